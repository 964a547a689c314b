"""Text-rewriting commands built on the locator, parser and formatter.

These return new strings; applying them to a document is left to the host.
"""
from bisect import bisect_left
from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Optional

from .formatting import format_for_display
from .models import ContentFormat, FormatSettings
from .text_search import locate_phrase_at_cursor, strip_formatting_with_map, strip_markdown
from .utils import parse_all_occurrences, parse_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conversion:
    line: str
    cursor: int
    original: str
    replacement: str
    start: int
    end: int


def convert_phrase_at_cursor(line: str, cursor: int, settings: FormatSettings | None = None,
                             content_format: ContentFormat = ContentFormat.PRIMARY,
                             daily_note_format: str | None = None) -> Optional[Conversion]:
    """Replace the date phrase under the cursor with its formatted text.

    The cursor stays put when it was at the start of the phrase and moves to
    the end of the replacement otherwise. Returns None when no phrase is
    found or it does not resolve.
    """
    # search the line with emphasis markers removed, then map back
    plain, mapping = strip_formatting_with_map(line)
    found = locate_phrase_at_cursor(plain, bisect_left(mapping, cursor))
    if found is None:
        logger.info('convert_phrase_at_cursor: no date-like text at cursor %d', cursor)
        return None
    start, end = mapping[found.start], mapping[found.end - 1] + 1
    text = strip_markdown(found.text)
    instant = parse_date(text)
    if instant is None:
        logger.warning("convert_phrase_at_cursor: %r doesn't seem to be a date", text)
        return None
    replacement = format_for_display(text, instant, content_format, daily_note_format, settings)
    new_line = line[:start] + replacement + line[end:]
    new_cursor = start if cursor == start else start + len(replacement)
    logger.debug('convert_phrase_at_cursor: %r -> %r', line[start:end], replacement)
    return Conversion(line=new_line, cursor=new_cursor, original=line[start:end], replacement=replacement,
                      start=start, end=end)


def convert_selection(selection: str, settings: FormatSettings | None = None,
                      content_format: ContentFormat = ContentFormat.PRIMARY,
                      daily_note_format: str | None = None) -> Optional[str]:
    """Formatted text for a whole selection, or None if it isn't a date."""
    text = strip_markdown(selection)
    instant = parse_date(text)
    if instant is None:
        logger.warning('convert_selection: could not parse %r as a date', text)
        return None
    return format_for_display(text, instant, content_format, daily_note_format, settings)


def convert_all_dates(text: str, settings: FormatSettings | None = None,
                      content_format: ContentFormat = ContentFormat.PRIMARY,
                      daily_note_format: str | None = None, *,
                      relative_base: datetime | None = None) -> str:
    """Rewrite every date expression found in ``text`` with its formatted text."""
    if not text:
        return text
    occurrences = parse_all_occurrences(text, relative_base=relative_base)
    if not occurrences:
        return text
    out = text
    # replace back to front so earlier offsets stay valid
    for occ in reversed(occurrences):
        replacement = format_for_display(occ.text, occ.instant, content_format, daily_note_format, settings)
        out = out[:occ.start] + replacement + out[occ.end:]
    logger.info('convert_all_dates: rewrote %d date(s)', len(occurrences))
    return out
