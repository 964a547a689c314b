"""Locale-scoped holiday name cache.

The cache maps case-folded holiday names (plus short names and a few common
aliases) to the concrete dates of that holiday in the current and next year.
A locale change builds a brand new snapshot and swaps it in by reference, so
readers only ever see a complete snapshot or the previous one.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
import logging
import re
from typing import Dict, List, Optional, Tuple

import holidays as holidays_lib

from . import config

logger = logging.getLogger(__name__)

# Display alias -> case-folded key of the holiday whose dates it borrows.
HOLIDAY_ALIASES = {
    'Xmas': 'christmas',
    'X-mas': 'christmas',
    'July 4th': 'independence day',
    '4th of July': 'independence day',
}

# Suffix the holidays package appends to substitute days off.
_OBSERVED_RE = re.compile(r"\s*\(observed\)\s*$", flags=re.IGNORECASE)


@dataclass(frozen=True)
class HolidayEntry:
    name: str
    dates: Tuple[date, ...]

    def next_date(self, today: date | None = None) -> date | None:
        """Return the earliest date on or after today, else the latest past date."""
        if not self.dates:
            return None
        today = today or date.today()
        ordered = sorted(self.dates)
        for d in ordered:
            if d >= today:
                return d
        return ordered[-1]


@dataclass(frozen=True)
class HolidaySnapshot:
    locale: str = ''
    entries: Dict[str, HolidayEntry] = field(default_factory=dict)

    @property
    def enabled(self) -> bool:
        return bool(self.locale) and bool(self.entries)


def _load_country_holidays(locale: str, years: List[int]) -> Dict[str, List[date]]:
    """Return display name -> dates for the given locale and years.

    Raises whatever the holidays package raises for unsupported locales.
    """
    calendar = holidays_lib.country_holidays(locale, years=years)
    by_name: Dict[str, List[date]] = {}
    for d, names in sorted(calendar.items()):
        # several holidays on the same date come back joined with '; '
        for raw in str(names).split(';'):
            name = raw.strip()
            if not name or _OBSERVED_RE.search(name):
                continue
            by_name.setdefault(name, [])
            if d not in by_name[name]:
                by_name[name].append(d)
    return by_name


def build_snapshot(locale: str, today: date | None = None) -> HolidaySnapshot:
    """Build a complete snapshot for ``locale`` or raise; never returns a partial one."""
    today = today or date.today()
    years = [today.year, today.year + 1]
    by_name = _load_country_holidays(locale, years)

    entries: Dict[str, HolidayEntry] = {}
    for name, dates in by_name.items():
        entries[name.lower()] = HolidayEntry(name=name, dates=tuple(dates))

    # Short names ('christmas' for 'Christmas Day') point at the full entry.
    # First holiday to claim a short name keeps it.
    for key, entry in list(entries.items()):
        short = key.split(' ')[0]
        if len(short) > 3 and short not in entries:
            entries[short] = entry

    for alias, target in HOLIDAY_ALIASES.items():
        hit = entries.get(target)
        if hit is not None:
            entries[alias.lower()] = HolidayEntry(name=alias, dates=hit.dates)

    return HolidaySnapshot(locale=locale, entries=entries)


class HolidayCache:
    """Holds the active holiday snapshot for one locale at a time."""

    def __init__(self, fallback_locale: str | None = None):
        self.fallback_locale = fallback_locale or config.DEFAULT_HOLIDAY_LOCALE
        self._snapshot = HolidaySnapshot()
        self._notice: Optional[str] = None

    @property
    def locale(self) -> str:
        return self._snapshot.locale

    @property
    def snapshot(self) -> HolidaySnapshot:
        return self._snapshot

    @property
    def enabled(self) -> bool:
        return self._snapshot.enabled

    def set_locale(self, tag: str | None, today: date | None = None) -> str:
        """Rebuild the cache for ``tag`` and return the locale actually active.

        An empty tag clears the cache. When the locale cannot be loaded the
        fallback locale is used instead and a one-time notice is queued.
        """
        locale = (tag or '').strip().upper()
        if not locale:
            self._snapshot = HolidaySnapshot()
            logger.info('holiday locale cleared; holiday parsing disabled')
            return ''
        try:
            snapshot = build_snapshot(locale, today=today)
        except Exception as e:
            logger.warning('failed to load holidays for locale %r: %s', locale, e)
            if locale == self.fallback_locale:
                self._snapshot = HolidaySnapshot()
                self._notice = f'Failed to set holiday locale: {locale}. Holidays are disabled.'
                return ''
            try:
                snapshot = build_snapshot(self.fallback_locale, today=today)
            except Exception:
                logger.exception('fallback holiday locale %r failed as well', self.fallback_locale)
                self._snapshot = HolidaySnapshot()
                self._notice = f'Failed to set holiday locale: {locale}. Holidays are disabled.'
                return ''
            self._notice = (f'Failed to set holiday locale: {locale}. '
                            f'Using {self.fallback_locale} locale as fallback.')
        self._snapshot = snapshot
        logger.debug('holiday cache built for %s with %d keys', snapshot.locale, len(snapshot.entries))
        return snapshot.locale

    def pop_notice(self) -> Optional[str]:
        """Return the pending user notice, if any, and clear it."""
        notice, self._notice = self._notice, None
        return notice

    def holiday_names(self) -> List[str]:
        """Unique display names (including aliases), sorted case-insensitively."""
        names = {entry.name for entry in self._snapshot.entries.values()}
        return sorted(names, key=lambda n: n.lower())

    def lookup(self, text: str) -> Optional[HolidayEntry]:
        """Find the holiday referenced by ``text``.

        Tries an exact key match, then a key contained in the text (longest
        key first), then a key containing the text anywhere.
        """
        snapshot = self._snapshot
        if not snapshot.entries or not text:
            return None
        cleaned = text.strip().lower()
        if not cleaned:
            return None
        hit = snapshot.entries.get(cleaned)
        if hit is not None:
            return hit
        for key in sorted(snapshot.entries, key=len, reverse=True):
            if re.search(r"(?<!\w)" + re.escape(key) + r"(?!\w)", cleaned):
                return snapshot.entries[key]
        if len(cleaned) >= 3 and not cleaned.isdigit():
            for key, entry in snapshot.entries.items():
                if cleaned in key:
                    return entry
        return None

    def resolve(self, text: str, today: date | None = None) -> Optional[datetime]:
        entry = self.lookup(text)
        if entry is None:
            return None
        d = entry.next_date(today)
        if d is None:
            return None
        return datetime(d.year, d.month, d.day)


default_cache = HolidayCache()


def set_locale(tag: str | None) -> str:
    return default_cache.set_locale(tag)


def get_holiday_names() -> List[str]:
    return default_cache.holiday_names()
