import re

import pytest

from quickdates import suggestions
from quickdates.suggestions import PatternGenerator, get_pattern_suggestions, get_suggestions

SEEDS = ['Today', 'Tomorrow', 'Yesterday']


def test_next_expands_units_and_weekdays():
    assert get_suggestions('next', []) == [
        'Next Week', 'Next Year', 'Next Month',
        'Next Friday', 'Next Monday', 'Next Sunday',
        'Next Tuesday', 'Next Saturday', 'Next Thursday', 'Next Wednesday',
    ]


def test_qualified_unit_filtered_by_remainder():
    assert get_suggestions('last mo', []) == ['Last Month', 'Last Monday']


def test_number_expands_to_durations():
    assert get_suggestions('3', []) == [
        'In 3 days', 'In 3 hours', 'In 3 minutes', 'In 3 months', 'In 3 weeks', 'In 3 years',
    ]
    assert get_suggestions('in 12', [])[0] == 'In 12 days'


def test_period_boundaries():
    assert get_suggestions('start of n', []) == [
        'Start of next week', 'Start of next year', 'Start of next month', 'Start of next quarter',
    ]


def test_weekend():
    assert get_suggestions('weekend', []) == ['Next weekend', 'This weekend']
    assert get_suggestions('this wee', []) == ['This Week', 'This weekend', 'This Wednesday']


def test_weekday_prefix():
    assert get_suggestions('wed', []) == ['Wednesday']
    assert get_suggestions('t', []) == ['Tuesday', 'Thursday']


def test_weekday_with_qualified_week():
    assert get_suggestions('monday n', []) == ['Monday next week']


def test_month_prefix():
    assert get_suggestions('sep', []) == ['September']


def test_relative_day_with_time():
    assert get_suggestions('tomorrow mor', []) == ['Tomorrow morning']
    result = get_suggestions('today n', [])
    assert result == ['Today noon', 'Today night']
    assert 'Today now' not in result


def test_seeds_and_patterns_dedupe_case_insensitively():
    result = get_suggestions('to', ['today', 'Tomorrow'])
    assert result == ['today', 'Tomorrow']


def test_empty_query_returns_seeds():
    assert get_suggestions('', SEEDS) == ['Today', 'Tomorrow', 'Yesterday']
    assert get_suggestions(None, []) == []


def test_empty_query_dedupes_seeds_keeping_first_spelling():
    assert get_suggestions('', ['Today', 'today', 'Tomorrow', 'TOMORROW']) == ['Today', 'Tomorrow']


def test_unknown_query_echoed_capitalized():
    assert get_suggestions('zzqx', SEEDS) == ['Zzqx']


def test_result_is_capped():
    seeds = [f'x{i:02d}' for i in range(30)]
    result = get_suggestions('x', seeds)
    assert len(result) == 15
    assert result[0] == 'x00'


def test_exact_match_ranked_first():
    result = get_suggestions('today', ['Sometime today', 'Today'])
    assert result[0] == 'Today'
    assert result[-1] == 'Sometime today'


def test_holiday_suggestions(us_holidays):
    result = get_suggestions('christ', SEEDS)
    assert result
    assert result[0].startswith('Christmas')
    assert all('christ' in s.lower() for s in result)


def test_holidays_off_without_locale():
    assert get_suggestions('christ', SEEDS) == ['Christ']


def test_holiday_query_too_short(us_holidays):
    assert not any('Christmas' in s for s in get_pattern_suggestions('c'))


def test_failing_generator_is_skipped(monkeypatch, caplog):
    def broken(query, m=None):
        raise ValueError('bad generator')

    table = [PatternGenerator('broken', lambda lower: True, broken, 1000)] + suggestions.GENERATORS
    monkeypatch.setattr(suggestions, 'GENERATORS', table)
    assert get_suggestions('wed', []) == ['Wednesday']
    assert 'broken' in caplog.text


def test_register_generator(monkeypatch):
    monkeypatch.setattr(suggestions, 'GENERATORS', list(suggestions.GENERATORS))
    suggestions.register_generator(
        PatternGenerator('fortnight', re.compile(r"^fort"), lambda q, m: ['In a fortnight'], 10))
    assert get_suggestions('fort', []) == ['In a fortnight']


@pytest.mark.parametrize('query', ['  ', ''])
def test_blank_pattern_query(query):
    assert get_pattern_suggestions(query) == []
