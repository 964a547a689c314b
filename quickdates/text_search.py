"""Locate the date/time phrase under a cursor.

The line is split into whitespace-delimited tokens. Starting from the token
under the cursor, every contiguous window of up to ``max_words`` tokens is
tried, longest first, and the first window that reads as a date wins.
"""
import logging
import re
from typing import Callable, List, NamedTuple, Optional, Tuple

from . import config
from .models import TemporalExpression
from .utils import MONTH_LOOKUP, is_date_phrase, match_month_day_year

logger = logging.getLogger(__name__)

# Punctuation wrapping a phrase is never part of it ('(tomorrow)', '2025,', 'Day!').
_LEADING_PUNCT = '([{"\''
_TRAILING_PUNCT = ')]}"\'!?,.:;'

# A window may not begin or end with a word that only links it to the
# surrounding sentence ('at' in 'May 9 at').
_LEADING_CONNECTORS = {'at', 'on', 'of', 'and', 'by', 'to', 'for'}
_TRAILING_CONNECTORS = {'at', 'on', 'of', 'the', 'and', 'by', 'in', 'from', 'to', 'for'}

_DAY_NUMBER_RE = re.compile(r"^\d{1,2}(?:st|nd|rd|th)?$", flags=re.IGNORECASE)
_YEAR_RE = re.compile(r"^\d{4}$")


class Token(NamedTuple):
    text: str
    start: int
    end: int


def tokenize(line: str) -> List[Token]:
    return [Token(m.group(0), m.start(), m.end()) for m in re.finditer(r"\S+", line or '')]


def _core(text: str) -> str:
    return text.lstrip(_LEADING_PUNCT).rstrip(_TRAILING_PUNCT)


def _trimmed_span(tok: Token) -> Tuple[int, int]:
    start, end = tok.start, tok.end
    while start < end and tok.text[start - tok.start] in _LEADING_PUNCT:
        start += 1
    while end > start and tok.text[end - 1 - tok.start] in _TRAILING_PUNCT:
        end -= 1
    # the closing dot of 'p.m.' belongs to the grammar
    if end < tok.end and tok.text[end - tok.start] == '.' and re.search(
            r"[ap]\.m$", tok.text[:end - tok.start], flags=re.IGNORECASE):
        end += 1
    return start, end


def find_anchor(tokens: List[Token], cursor: int) -> int:
    """Index of the token touching ``cursor`` (either edge counts), or -1."""
    for i, tok in enumerate(tokens):
        if tok.start <= cursor <= tok.end:
            return i
    return -1


def _windows(anchor: int, required_end: int, count: int, max_words: int):
    """Yield (first, last) token index pairs, longest first.

    Every window covers ``anchor..required_end``. Among windows of equal
    length the one with the anchor furthest to the right comes first.
    """
    span = required_end - anchor + 1
    for length in range(max_words, span - 1, -1):
        for first in range(anchor - (length - span), anchor + 1):
            last = first + length - 1
            if first < 0 or last >= count or last < required_end:
                continue
            yield first, last


def locate_phrase_at_cursor(line: str, cursor: int, *, max_words: int | None = None,
                            is_valid: Callable[[str], bool] | None = None) -> Optional[TemporalExpression]:
    """Return the longest date phrase containing the cursor, or None.

    ``is_valid`` is the oracle deciding whether a candidate reads as a date;
    it defaults to :func:`quickdates.utils.is_date_phrase`.
    """
    if not line or cursor is None or cursor < 0 or cursor > len(line):
        return None
    max_words = max_words or config.MAX_PHRASE_WORDS
    is_valid = is_valid or is_date_phrase

    tokens = tokenize(line)
    anchor = find_anchor(tokens, cursor)
    if anchor == -1:
        return None

    # A month name followed by a day number is always taken together.
    required_end = anchor
    anchor_core = _core(tokens[anchor].text).lower().rstrip('.')
    if anchor_core in MONTH_LOOKUP and anchor + 1 < len(tokens) and _DAY_NUMBER_RE.match(_core(tokens[anchor + 1].text)):
        required_end = anchor + 1

    for first, last in _windows(anchor, required_end, len(tokens), max_words):
        found = _check_window(line, tokens, first, last)
        if found is None:
            continue
        text, start, end = found
        if _YEAR_RE.match(text) or match_month_day_year(text) is not None or is_valid(text):
            logger.debug('locate_phrase_at_cursor: %r at [%d, %d)', text, start, end)
            return TemporalExpression(text=text, start=start, end=end)
    return None


def _check_window(line: str, tokens: List[Token], first: int, last: int) -> Optional[Tuple[str, int, int]]:
    # tokens are whitespace-delimited, so every window is already flanked
    window = tokens[first:last + 1]
    first_word = _core(window[0].text).lower()
    last_word = _core(window[-1].text).lower()
    if len(window) > 1 and (first_word in _LEADING_CONNECTORS or last_word in _TRAILING_CONNECTORS):
        return None
    start = _trimmed_span(window[0])[0]
    end = _trimmed_span(window[-1])[1]
    if end <= start:
        return None
    return line[start:end], start, end


def strip_markdown(text: str) -> str:
    """Remove inline emphasis markers (* _ ~~ `) and trim."""
    return re.sub(r"(\*{1,2}|_{1,2}|~{2}|`)", '', text or '').strip()


def strip_formatting_with_map(line: str) -> Tuple[str, List[int]]:
    """Drop emphasis characters, returning the text and a map back to ``line``.

    ``mapping[i]`` is the offset in ``line`` of character ``i`` of the
    returned text.
    """
    mapping: List[int] = []
    chars: List[str] = []
    for i, ch in enumerate(line or ''):
        if ch not in '*_~`':
            mapping.append(i)
            chars.append(ch)
    return ''.join(chars), mapping
