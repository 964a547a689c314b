import pytest
from datetime import date, datetime

from quickdates import holidays_cache
from quickdates.holidays_cache import HolidayCache, HolidayEntry, build_snapshot

TODAY = date(2025, 1, 15)

FAKE_CALENDAR = {
    "New Year's Day": [date(2025, 1, 1), date(2026, 1, 1)],
    'Christmas Day': [date(2025, 12, 25), date(2026, 12, 25)],
    'Christmas Eve': [date(2025, 12, 24), date(2026, 12, 24)],
    'Independence Day': [date(2025, 7, 4), date(2026, 7, 4)],
    'Labor Day': [date(2025, 9, 1), date(2026, 9, 7)],
}


@pytest.fixture
def fake_calendar(monkeypatch):
    def fake_load(locale, years):
        if locale not in ('US', 'XX'):
            raise NotImplementedError(f'Country {locale} not available')
        return {name: list(dates) for name, dates in FAKE_CALENDAR.items()}

    monkeypatch.setattr(holidays_cache, '_load_country_holidays', fake_load)


def test_next_date_picks_upcoming():
    entry = HolidayEntry('Christmas Day', (date(2025, 12, 25), date(2026, 12, 25)))
    assert entry.next_date(date(2025, 1, 2)) == date(2025, 12, 25)
    assert entry.next_date(date(2025, 12, 25)) == date(2025, 12, 25)
    assert entry.next_date(date(2025, 12, 26)) == date(2026, 12, 25)


def test_next_date_all_past_returns_latest():
    entry = HolidayEntry('Christmas Day', (date(2024, 12, 25), date(2023, 12, 25)))
    assert entry.next_date(date(2025, 6, 1)) == date(2024, 12, 25)
    assert HolidayEntry('Nothing', ()).next_date(TODAY) is None


def test_snapshot_short_names_and_aliases(fake_calendar):
    snap = build_snapshot('US', today=TODAY)
    assert snap.enabled
    # 'christmas' goes to whichever holiday claimed it first
    assert snap.entries['christmas'].name == 'Christmas Day'
    # short names of three letters or fewer are not added
    assert 'new' not in snap.entries
    assert snap.entries['labor'].name == 'Labor Day'
    assert snap.entries['xmas'].dates == snap.entries['christmas day'].dates
    assert snap.entries['july 4th'].name == 'July 4th'
    assert snap.entries['4th of july'].dates[0] == date(2025, 7, 4)


def test_load_skips_observed(monkeypatch):
    class FakeCalendar(dict):
        pass

    cal = FakeCalendar({
        date(2026, 7, 3): 'Independence Day (observed)',
        date(2026, 7, 4): 'Independence Day',
        date(2026, 12, 25): 'Christmas Day; Some Local Day',
    })
    monkeypatch.setattr(holidays_cache.holidays_lib, 'country_holidays', lambda locale, years: cal)
    loaded = holidays_cache._load_country_holidays('US', [2026])
    assert loaded == {
        'Independence Day': [date(2026, 7, 4)],
        'Christmas Day': [date(2026, 12, 25)],
        'Some Local Day': [date(2026, 12, 25)],
    }


def test_lookup_order(fake_calendar):
    cache = HolidayCache(fallback_locale='US')
    assert cache.set_locale('us', today=TODAY) == 'US'
    # exact key
    assert cache.lookup('Christmas Eve').name == 'Christmas Eve'
    # key contained in the text, longest first
    assert cache.lookup('the christmas eve party').name == 'Christmas Eve'
    assert cache.lookup('labor day weekend').name == 'Labor Day'
    # text anywhere inside a key, first holiday wins
    assert cache.lookup('indep').name == 'Independence Day'
    assert cache.lookup('lab').name == 'Labor Day'
    assert cache.lookup('stmas').name == 'Christmas Day'
    assert cache.lookup('mas').name == 'Christmas Day'
    assert cache.lookup('pendence').name == 'Independence Day'
    # too short or numeric
    assert cache.lookup('la') is None
    assert cache.lookup('2025') is None
    assert cache.lookup('') is None


def test_resolve_returns_midnight(fake_calendar):
    cache = HolidayCache(fallback_locale='US')
    cache.set_locale('US', today=TODAY)
    assert cache.resolve('xmas', today=TODAY) == datetime(2025, 12, 25)
    assert cache.resolve('new year', today=TODAY) == datetime(2026, 1, 1)
    assert cache.resolve('dentist', today=TODAY) is None


def test_holiday_names_sorted(fake_calendar):
    cache = HolidayCache(fallback_locale='US')
    cache.set_locale('US', today=TODAY)
    names = cache.holiday_names()
    assert names == sorted(names, key=str.lower)
    assert 'Xmas' in names
    assert 'Christmas Day' in names
    assert len(names) == len(set(names))


def test_empty_locale_disables(fake_calendar):
    cache = HolidayCache(fallback_locale='US')
    cache.set_locale('US', today=TODAY)
    assert cache.set_locale('') == ''
    assert not cache.enabled
    assert cache.holiday_names() == []
    assert cache.lookup('christmas') is None


def test_unknown_locale_falls_back_with_notice(fake_calendar):
    cache = HolidayCache(fallback_locale='US')
    assert cache.set_locale('ZZ', today=TODAY) == 'US'
    assert cache.enabled
    notice = cache.pop_notice()
    assert 'ZZ' in notice and 'US' in notice
    # shown only once
    assert cache.pop_notice() is None


def test_failing_fallback_leaves_cache_empty(monkeypatch):
    def broken(locale, today=None):
        raise RuntimeError('holiday data unavailable')

    cache = HolidayCache(fallback_locale='US')
    monkeypatch.setattr(holidays_cache, 'build_snapshot', broken)
    assert cache.set_locale('DE', today=TODAY) == ''
    assert not cache.enabled
    assert 'Holidays are disabled' in cache.pop_notice()


def test_failed_refresh_never_exposes_partial_state(fake_calendar, monkeypatch):
    cache = HolidayCache(fallback_locale='XX')
    cache.set_locale('US', today=TODAY)
    before = cache.snapshot

    def broken(locale, today=None):
        raise RuntimeError('boom')

    monkeypatch.setattr(holidays_cache, 'build_snapshot', broken)
    cache.set_locale('FR', today=TODAY)
    # either the old snapshot or an empty one, never something half-built
    assert cache.snapshot is before or not cache.snapshot.entries


def test_real_us_calendar(us_holidays):
    names = [n.lower() for n in us_holidays.holiday_names()]
    assert 'christmas day' in names
    assert 'xmas' in names
    assert us_holidays.lookup('christmas') is not None


def test_module_level_helpers(fake_calendar):
    assert holidays_cache.set_locale('us') == 'US'
    assert 'Christmas Day' in holidays_cache.get_holiday_names()
    assert holidays_cache.set_locale('') == ''
    assert holidays_cache.get_holiday_names() == []
