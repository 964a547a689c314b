"""Completion suggestions for partially typed date phrases.

Suggestions come from three places: the host's seed list, a table of
pattern generators (each a recognizer plus a pure generator function) and
the holiday names of the active locale. The merged list is de-duplicated
case-insensitively, ranked and capped.
"""
from dataclasses import dataclass
import logging
import re
from typing import Callable, Iterable, List, Optional, Pattern, Union

from . import config
from .holidays_cache import default_cache, HolidayCache
from .utils import DAYS_OF_THE_WEEK, MONTHS_EN, TIME_OF_DAY_PHRASES, capitalize_first

logger = logging.getLogger(__name__)

RELATIVE_DAYS = ['today', 'tomorrow', 'yesterday']
QUALIFIERS = ['this', 'next', 'last']

Recognizer = Union[Pattern, Callable[[str], bool]]


@dataclass(frozen=True)
class PatternGenerator:
    """A recognizer over the lower-cased query and the generator it gates.

    ``generate`` receives the trimmed query as typed and, for regex
    recognizers, the match object (None for predicate recognizers).
    Higher ``priority`` runs first.
    """
    name: str
    recognizer: Recognizer
    generate: Callable[[str, Optional[re.Match]], List[str]]
    priority: int = 0

    def evaluate(self, query: str) -> List[str]:
        lower = query.lower()
        if isinstance(self.recognizer, re.Pattern):
            m = self.recognizer.match(lower)
            if not m:
                return []
            return list(self.generate(query, m))
        if not self.recognizer(lower):
            return []
        return list(self.generate(query, None))


def _numeric_durations(query: str, m: re.Match) -> List[str]:
    # 'in 3' / 'in3' / '3' -> 'In 3 days', 'In 3 weeks', ...
    num = m.group(1)
    return [capitalize_first(f'in {num} {unit}')
            for unit in ('days', 'weeks', 'months', 'hours', 'minutes', 'years')]


def _qualified_units(query: str, m: re.Match) -> List[str]:
    keyword = m.group(1).lower()
    remainder = query[len(m.group(0)):].lower().lstrip()
    units = ['Week', 'Month', 'Year'] + DAYS_OF_THE_WEEK
    if remainder:
        units = [u for u in units if u.lower().startswith(remainder)]
    return [capitalize_first(f'{keyword} {u}') for u in units]


def _is_weekday_prefix(lower: str) -> bool:
    return bool(lower) and any(d.lower().startswith(lower) for d in DAYS_OF_THE_WEEK)


def _weekday_prefix(query: str, m=None) -> List[str]:
    lower = query.lower()
    return [d for d in DAYS_OF_THE_WEEK if d.lower().startswith(lower)]


def _is_weekday_with_qualifier(lower: str) -> bool:
    parts = lower.split()
    return (len(parts) >= 2
            and any(d.lower().startswith(parts[0]) for d in DAYS_OF_THE_WEEK)
            and any(q.startswith(parts[1]) for q in QUALIFIERS))


def _weekday_with_qualifier(query: str, m=None) -> List[str]:
    lower = ' '.join(query.lower().split())
    parts = lower.split()
    out = []
    for day in DAYS_OF_THE_WEEK:
        if not day.lower().startswith(parts[0]):
            continue
        for q in QUALIFIERS:
            if not q.startswith(parts[1]):
                continue
            phrase = f'{day} {q} week'
            if phrase.lower().startswith(lower):
                out.append(phrase)
    return out


def _month_prefix(query: str, m=None) -> List[str]:
    lower = query.lower()
    return [mon for mon in MONTHS_EN if mon.lower().startswith(lower)]


def _relative_day_prefix(query: str, m=None) -> List[str]:
    lower = query.lower()
    return [capitalize_first(opt) for opt in RELATIVE_DAYS if opt.startswith(lower)]


def _is_relative_day_with_time(lower: str) -> bool:
    parts = lower.split()
    return len(parts) == 2 and parts[0] in RELATIVE_DAYS


def _relative_day_with_time(query: str, m=None) -> List[str]:
    day, after = query.split()
    after = after.lower()
    return [f'{capitalize_first(day.lower())} {p.lower()}' for p in TIME_OF_DAY_PHRASES
            if p != 'Now' and p.lower().startswith(after)]


def _is_time_of_day_prefix(lower: str) -> bool:
    return bool(lower) and any(p.lower().startswith(lower) for p in TIME_OF_DAY_PHRASES)


def _time_of_day_prefix(query: str, m=None) -> List[str]:
    lower = query.lower()
    return [p for p in TIME_OF_DAY_PHRASES if p.lower().startswith(lower)]


def _is_weekend(lower: str) -> bool:
    parts = lower.split()
    if len(parts) == 1:
        return 'weekend'.startswith(parts[0])
    if len(parts) == 2 and parts[0] in ('this', 'next'):
        return 'weekend'.startswith(parts[1])
    return False


def _weekend(query: str, m=None) -> List[str]:
    parts = query.lower().split()
    if len(parts) == 2:
        return [f'{capitalize_first(parts[0])} weekend']
    return ['This weekend', 'Next weekend']


def _is_period_boundary(lower: str) -> bool:
    return lower.startswith('st') or lower.startswith('end')


def _period_boundary(query: str, m=None) -> List[str]:
    lower = ' '.join(query.lower().split())
    out = []
    for boundary in ('start', 'end'):
        for selector in ('this', 'next'):
            for unit in ('week', 'month', 'quarter', 'year'):
                phrase = f'{capitalize_first(boundary)} of {selector} {unit}'
                if phrase.lower().startswith(lower):
                    out.append(phrase)
    return out


GENERATORS: List[PatternGenerator] = [
    PatternGenerator('numeric-duration', re.compile(r"^(?:in\s*)?(\d+)"), _numeric_durations, 100),
    PatternGenerator('qualified-unit', re.compile(r"^(this|next|last)(?:\s+|$)"), _qualified_units, 90),
    PatternGenerator('weekday-prefix', _is_weekday_prefix, _weekday_prefix, 85),
    PatternGenerator('weekday-qualified-week', _is_weekday_with_qualifier, _weekday_with_qualifier, 82),
    PatternGenerator('month-prefix', re.compile(r"^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)"), _month_prefix, 80),
    PatternGenerator('relative-day', re.compile(r"^(to|ye|tom)"), _relative_day_prefix, 70),
    PatternGenerator('relative-day-time', _is_relative_day_with_time, _relative_day_with_time, 65),
    PatternGenerator('time-of-day', _is_time_of_day_prefix, _time_of_day_prefix, 60),
    PatternGenerator('weekend', _is_weekend, _weekend, 55),
    PatternGenerator('period-boundary', _is_period_boundary, _period_boundary, 50),
]


def holiday_generator(cache: HolidayCache) -> PatternGenerator:
    """Generator completing holiday names of ``cache``'s locale."""

    def recognize(lower: str) -> bool:
        if len(lower) < config.MIN_HOLIDAY_QUERY_LENGTH or not cache.enabled:
            return False
        return any(lower in key for key in cache.snapshot.entries)

    def generate(query: str, m=None) -> List[str]:
        lower = query.lower()
        return [n for n in cache.holiday_names() if lower in n.lower()][:config.MAX_HOLIDAY_SUGGESTIONS]

    return PatternGenerator('holiday', recognize, generate, 40)


def register_generator(generator: PatternGenerator) -> None:
    """Add a generator to the table used by every later call."""
    GENERATORS.append(generator)


def get_pattern_suggestions(query: str, *, cache: HolidayCache | None = None) -> List[str]:
    """Run every generator against ``query`` in priority order.

    A generator that raises is logged and skipped; the others still
    contribute. Returns [] for an empty query.
    """
    trimmed = (query or '').strip()
    if not trimmed:
        return []
    cache = cache or default_cache
    table = sorted(GENERATORS + [holiday_generator(cache)], key=lambda g: g.priority, reverse=True)
    seen = set()
    out: List[str] = []
    for gen in table:
        try:
            items = gen.evaluate(trimmed)
        except Exception:
            logger.exception('suggestion generator %r failed for %r', gen.name, trimmed)
            continue
        for s in items:
            if s not in seen:
                seen.add(s)
                out.append(s)
    return out


def _rank(lower_query: str):
    def key(s: str):
        low = s.lower()
        if low == lower_query:
            return (0, 0, low)
        if low.startswith(lower_query):
            return (1, len(s), low)
        return (2, 0, low)
    return key


def get_suggestions(query: str | None, seeds: Iterable[str] | None = None, *,
                    cache: HolidayCache | None = None) -> List[str]:
    """Return up to ``config.MAX_SUGGESTIONS`` ranked completions for ``query``.

    Exact matches come first, then prefix matches (shorter first), then the
    rest; ties are broken alphabetically. An unmatched non-empty query comes
    back as a single capitalized candidate so the host always has something
    to offer.
    """
    cache = cache or default_cache
    raw = query or ''
    lower = raw.strip().lower()

    merged: List[str] = []
    seen = set()

    def add(s: str):
        key = s.lower()
        if key not in seen:
            seen.add(key)
            merged.append(s)

    for s in seeds or []:
        if not lower or lower in s.lower():
            add(s)

    if lower:
        for s in get_pattern_suggestions(raw, cache=cache):
            add(s)

    if lower and cache.enabled:
        holidays = [h for h in cache.holiday_names() if lower in h.lower()]
        for s in holidays[:config.MAX_HOLIDAY_SUGGESTIONS]:
            add(s)

    if lower:
        merged = [s for s in merged if lower in s.lower()]
        if not merged:
            return [capitalize_first(raw.strip())]

    merged.sort(key=_rank(lower))
    return merged[:config.MAX_SUGGESTIONS]
