from collections import OrderedDict
from datetime import date, datetime, timedelta
import logging
import re
import time
from typing import List, Optional

import dateparser
import dateparser.search
from dateutil.relativedelta import relativedelta, MO, SU

from . import config
from .holidays_cache import default_cache, HolidayCache
from .models import DateOccurrence

logger = logging.getLogger(__name__)

MONTHS_EN = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December'
]

DAYS_OF_THE_WEEK = [
    'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday'
]

# Capitalized for display; parse_date understands every one of these.
TIME_OF_DAY_PHRASES = [
    'Noon', 'Midday', 'Midnight', 'Morning', 'Afternoon', 'Evening', 'Night', 'Now'
]

# Hour assigned to each time-of-day word. Midnight rolls over to the next day.
TIME_OF_DAY_HOURS = {
    'noon': 12,
    'midday': 12,
    'midnight': 0,
    'morning': 6,
    'afternoon': 15,
    'evening': 20,
    'night': 22,
    'tonight': 22,
}

# Common English number-words that dateparser can mistake for months/days
# when they appear alone in a scanned block (e.g. 'eight' -> August).
NUMBER_WORDS = {
    'zero', 'one', 'two', 'three', 'four', 'five', 'six', 'seven', 'eight', 'nine', 'ten', 'eleven', 'twelve'
}

# month token (full name, 3-letter abbreviation, 'sept') -> month number
MONTH_LOOKUP = {}
for _i, _m in enumerate(MONTHS_EN):
    MONTH_LOOKUP[_m.lower()] = _i + 1
    MONTH_LOOKUP[_m[:3].lower()] = _i + 1
MONTH_LOOKUP['sept'] = 9

WEEKDAY_LOOKUP = {}
for _i, _d in enumerate(DAYS_OF_THE_WEEK):
    WEEKDAY_LOOKUP[_d.lower()] = _i
    WEEKDAY_LOOKUP[_d[:3].lower()] = _i
WEEKDAY_LOOKUP.update({'tues': 1, 'weds': 2, 'thur': 3, 'thurs': 3})

_MONTH_GROUP = '|'.join(sorted(MONTH_LOOKUP, key=len, reverse=True))
_WEEKDAY_GROUP = '|'.join(sorted(WEEKDAY_LOOKUP, key=len, reverse=True))
_TIME_OF_DAY_GROUP = '|'.join(TIME_OF_DAY_HOURS)

# 'May 9 2025', 'Sep 10th, 2025', 'sept. 3 2024'
MONTH_DAY_YEAR_RE = re.compile(
    r"^(" + _MONTH_GROUP + r")\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})$", flags=re.IGNORECASE)

_TIME_OF_DAY_RE = re.compile(
    r"^(?:(today|tomorrow|yesterday|" + _WEEKDAY_GROUP + r")\s+)?(?:at\s+|in\s+the\s+|this\s+)?("
    + _TIME_OF_DAY_GROUP + r")$")
_RELATIVE_WEEKDAY_RE = re.compile(r"^(?:(this|next|last)\s+)?(" + _WEEKDAY_GROUP + r")$")
_WEEKDAY_OF_WEEK_RE = re.compile(r"^(" + _WEEKDAY_GROUP + r")\s+(this|next|last)\s+week$")
_RELATIVE_PERIOD_RE = re.compile(r"^(this|next|last)\s+(week|month|year)$")
_WEEKEND_RE = re.compile(r"^(?:(this|next|last)\s+)?weekend$")
_PERIOD_BOUNDARY_RE = re.compile(r"^(start|beginning|end)\s+of\s+(?:the\s+)?(this|next|last)\s+(week|month|quarter|year)$")

# Pure relative durations in day/week/year units carry no time of day.
_DATE_ONLY_DURATION_RE = re.compile(r"^(?:in\s+)?\d+\s*(?:days?|weeks?|years?)(?:\s+ago)?$")
_CLOCK_TIME_RE = re.compile(
    r"\b\d{1,2}\s?(?:am|pm|a\.m\.|p\.m\.)(?!\w)|(?<![\d./])\d{1,2}[:.h]\d{2}(?!\d|[./]\d)", flags=re.IGNORECASE)
_TIME_WORD_RE = re.compile(r"\b(?:noon|midday|midnight|morning|afternoon|evening|night|tonight|now)\b")
# Durations in hour/minute/second units land on a time of day.
_TIME_DURATION_RE = re.compile(r"\b\d+\s*(?:hours?|hrs?|minutes?|mins?|seconds?|secs?)\b")

# Words whose meaning depends on the wall clock at parse time. Phrases that
# contain any of them are never memoized.
_RELATIVE_WORDS_RE = re.compile(
    r"\b(?:now|today|tonight|tomorrow|yesterday|ago|in|next|last|this|weekend|start|end|"
    r"beginning|hours?|minutes?|seconds?|days?|weeks?|months?|years?|" + _WEEKDAY_GROUP + r"|"
    + _TIME_OF_DAY_GROUP + r")\b")

# A bare count with an optional unit, i.e. what enhance_text turns into a duration.
_BARE_COUNT_RE = re.compile(
    r"^(?:in\s+)?\d+\s*(?:days?|weeks?|months?|years?|hours?|hrs?|minutes?|mins?|seconds?|secs?)?$")


def now_local() -> datetime:
    """Return the current naive local datetime."""
    return datetime.now()


def capitalize_first(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


def enhance_text(text: str) -> str:
    """Rewrite bare numeric input into a relative phrase.

    '3' -> 'in 3 days', '3 weeks' -> 'in 3 weeks', 'in 3' -> 'in 3 days'.
    """
    if not text:
        return text
    trimmed = text.strip()
    modified = trimmed
    if re.match(r"^\d", trimmed):
        modified = f'in {trimmed}'
    if re.search(r"\d$", trimmed) and (re.fullmatch(r"in \d+", modified) or re.fullmatch(r"\d+", trimmed)):
        modified = f'{modified} days'
    return modified


def has_time_component(text: str | None) -> bool:
    """Return True if the phrase carries a time of day.

    True for 'now', time-of-day words (noon, evening, ...) and clock times
    (3pm, 14:00), except for pure day/week/year durations like 'in 3 days'.
    """
    if not text:
        return False
    lower = text.strip().lower()
    if not lower:
        return False
    if _DATE_ONLY_DURATION_RE.match(lower):
        return False
    if lower == 'now':
        return True
    if _TIME_WORD_RE.search(lower) or _TIME_DURATION_RE.search(lower):
        return True
    return bool(_CLOCK_TIME_RE.search(lower))


def match_month_day_year(text: str) -> Optional[datetime]:
    """Resolve the strict 'Month Day Year' shape, or None if it doesn't apply."""
    if not text:
        return None
    m = MONTH_DAY_YEAR_RE.match(text.strip())
    if not m:
        return None
    mon = MONTH_LOOKUP.get(m.group(1).lower())
    try:
        return datetime(int(m.group(3)), mon, int(m.group(2)))
    except (TypeError, ValueError):
        return None


def _start_of_day(d: date | datetime) -> datetime:
    return datetime(d.year, d.month, d.day)


def _week_start(base: datetime) -> datetime:
    return _start_of_day(base) + relativedelta(weekday=MO(-1))


def _shift(selector: str | None) -> int:
    return {'next': 1, 'last': -1}.get(selector or '', 0)


def _period_boundary(boundary: str, selector: str, unit: str, base: datetime) -> datetime:
    shift = _shift(selector)
    day = _start_of_day(base)
    if unit == 'week':
        start = _week_start(day) + timedelta(weeks=shift)
        return start if boundary != 'end' else start + relativedelta(weekday=SU)
    if unit == 'month':
        start = day.replace(day=1) + relativedelta(months=shift)
        return start if boundary != 'end' else start + relativedelta(months=1, days=-1)
    if unit == 'quarter':
        q_month = 3 * ((day.month - 1) // 3) + 1
        start = day.replace(month=q_month, day=1) + relativedelta(months=3 * shift)
        return start if boundary != 'end' else start + relativedelta(months=3, days=-1)
    start = day.replace(month=1, day=1) + relativedelta(years=shift)
    return start if boundary != 'end' else start.replace(month=12, day=31)


def _resolve_casual_phrase(lower: str, base: datetime) -> Optional[datetime]:
    """Resolve casual phrases the general grammar handles poorly or not at all.

    Weekdays are anchored to the Monday-based week containing ``base``:
    'this friday' is that week's Friday, 'next'/'last' shift by seven days
    and a bare weekday means its next occurrence on or after today.
    """
    if lower == 'now':
        return base

    dt = match_month_day_year(lower)
    if dt is not None:
        return dt

    m = _TIME_OF_DAY_RE.match(lower)
    if m:
        day_word, tod = m.group(1), m.group(2)
        day = _start_of_day(base)
        if day_word == 'tomorrow':
            day += timedelta(days=1)
        elif day_word == 'yesterday':
            day -= timedelta(days=1)
        elif day_word in WEEKDAY_LOOKUP:
            day += relativedelta(weekday=WEEKDAY_LOOKUP[day_word])
        if tod == 'midnight':
            return day + timedelta(days=1)
        return day.replace(hour=TIME_OF_DAY_HOURS[tod])

    m = _RELATIVE_WEEKDAY_RE.match(lower)
    if m:
        selector, wd = m.group(1), WEEKDAY_LOOKUP[m.group(2)]
        if selector is None:
            return _start_of_day(base) + relativedelta(weekday=wd)
        return _week_start(base) + timedelta(days=wd, weeks=_shift(selector))

    m = _WEEKDAY_OF_WEEK_RE.match(lower)
    if m:
        wd = WEEKDAY_LOOKUP[m.group(1)]
        return _week_start(base) + timedelta(days=wd, weeks=_shift(m.group(2)))

    m = _RELATIVE_PERIOD_RE.match(lower)
    if m:
        shift, unit = _shift(m.group(1)), m.group(2)
        if shift == 0:
            return _start_of_day(base)
        return _start_of_day(base) + relativedelta(**{unit + 's': shift})

    m = _WEEKEND_RE.match(lower)
    if m:
        return _week_start(base) + timedelta(days=5, weeks=_shift(m.group(1)))

    m = _PERIOD_BOUNDARY_RE.match(lower)
    if m:
        boundary = 'end' if m.group(1) == 'end' else 'start'
        return _period_boundary(boundary, m.group(2), m.group(3), base)

    return None


def _grammar_settings(base: datetime) -> dict:
    return {
        'RELATIVE_BASE': base,
        'DATE_ORDER': config.DATE_ORDER,
        'RETURN_AS_TIMEZONE_AWARE': False,
    }


class _ParseMemo:
    """Tiny time-bounded memo of text -> parse result.

    Entries expire after ``config.PARSE_MEMO_SECONDS``; callers only store
    results for phrases with no wall-clock dependence.
    """

    def __init__(self, size: int = config.PARSE_MEMO_SIZE):
        self.size = size
        self._items: OrderedDict = OrderedDict()

    def get(self, key):
        hit = self._items.get(key)
        if hit is None:
            return False, None
        stamp, value = hit
        if time.monotonic() - stamp > config.PARSE_MEMO_SECONDS:
            del self._items[key]
            return False, None
        self._items.move_to_end(key)
        return True, value

    def put(self, key, value):
        self._items[key] = (time.monotonic(), value)
        self._items.move_to_end(key)
        while len(self._items) > self.size:
            self._items.popitem(last=False)

    def clear(self):
        self._items.clear()


_PARSE_MEMO = _ParseMemo()


def is_relative_phrase(text: str) -> bool:
    lower = text.strip().lower()
    return bool(_BARE_COUNT_RE.match(lower)) or bool(_RELATIVE_WORDS_RE.search(lower))


def parse_date(text: str | None, *, relative_base: datetime | None = None,
               holidays: bool = True, cache: HolidayCache | None = None) -> Optional[datetime]:
    """Resolve a single date/time phrase to a naive local datetime.

    Holiday names from the active locale win over everything else. Otherwise
    bare numbers are rewritten to relative durations ('3' -> 'in 3 days'),
    casual phrases are resolved directly and the remainder is handed to
    dateparser. Returns None when nothing matches; never raises.

    ``holidays=False`` skips the holiday lookup (used by the boundary locator,
    which only accepts exact holiday names).
    """
    if not text or not text.strip():
        return None
    cache = cache or default_cache
    lower = text.strip().lower()

    memo_key = None
    if relative_base is None and config.PARSE_MEMO_SECONDS > 0 and not is_relative_phrase(lower):
        memo_key = (lower, holidays, cache.locale, id(cache))
        found, value = _PARSE_MEMO.get(memo_key)
        if found:
            return value

    base = relative_base or now_local()
    result = None
    # a bare month or weekday name never reads as a fragment of a holiday
    if holidays and cache.enabled and lower not in MONTH_LOOKUP and lower not in WEEKDAY_LOOKUP:
        result = cache.resolve(lower, today=base.date())
        if result is not None:
            logger.debug('parse_date: %r resolved as holiday -> %s', text, result)

    if result is None:
        enhanced = enhance_text(lower)
        try:
            result = _resolve_casual_phrase(enhanced, base)
            if result is None:
                result = dateparser.parse(enhanced, languages=['en'], settings=_grammar_settings(base))
            # 'in ' only helps counts; '2025-08-01' or '9 may' need the raw text
            if result is None and enhanced != lower:
                result = dateparser.parse(lower, languages=['en'], settings=_grammar_settings(base))
        except Exception:
            logger.exception('parse_date failed for %r', text)
            result = None
        if result is not None and result.tzinfo is not None:
            result = result.replace(tzinfo=None)
        logger.debug('parse_date: %r (as %r) -> %s', text, enhanced, result)

    if memo_key is not None:
        _PARSE_MEMO.put(memo_key, result)
    return result


def is_date_phrase(text: str, *, cache: HolidayCache | None = None,
                   relative_base: datetime | None = None) -> bool:
    """Stricter validity test used when searching for phrase boundaries.

    A holiday only counts when the whole text is one of its names; the
    substring matching done by parse_date would accept any sentence that
    merely mentions a holiday.
    """
    cache = cache or default_cache
    if cache.enabled and cache.snapshot.entries.get(text.strip().lower()) is not None:
        return True
    return parse_date(text, relative_base=relative_base, holidays=False, cache=cache) is not None


def parse_all_occurrences(text: str | None, *, relative_base: datetime | None = None) -> List[DateOccurrence]:
    """Find every disjoint date expression in a block of text.

    Uses dateparser's search over the whole block; each match is mapped back
    to its character offsets. Lone one/two digit numbers and number words
    are dropped as they are almost never meant as dates in running text.
    """
    if not text:
        return []
    base = relative_base or now_local()
    try:
        results = dateparser.search.search_dates(text, languages=['en'], settings=_grammar_settings(base))
    except Exception:
        logger.exception('parse_all_occurrences failed')
        return []
    if not results:
        return []

    out: List[DateOccurrence] = []
    pos = 0
    lowered = text.lower()
    for matched, dt in results:
        token = matched.strip().lower()
        if token in NUMBER_WORDS or re.fullmatch(r"\d{1,2}", token):
            continue
        idx = text.find(matched, pos)
        if idx == -1:
            idx = lowered.find(matched.lower(), pos)
        if idx == -1:
            logger.debug('parse_all_occurrences: could not place %r after offset %d', matched, pos)
            continue
        if dt.tzinfo is not None:
            dt = dt.replace(tzinfo=None)
        out.append(DateOccurrence(text=matched, start=idx, end=idx + len(matched), instant=dt))
        pos = idx + len(matched)
    return out


def clear_parse_memo() -> None:
    _PARSE_MEMO.clear()
