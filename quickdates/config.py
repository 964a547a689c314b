"""Simple runtime configuration for quickdates.

Control values are read from environment variables so hosts can tune them
in development or production without code changes.
"""
import os


def _trueish(v: str | None) -> bool:
    if not v:
        return False
    return v.lower() in ('1', 'true', 'yes', 'on')


# Holiday locale (country code understood by the `holidays` package, e.g. 'US',
# 'GB', 'DE'). Empty disables holiday parsing and holiday suggestions.
HOLIDAY_LOCALE = os.getenv('QUICKDATES_HOLIDAY_LOCALE', '').strip()

# Locale used when the requested one cannot be loaded.
DEFAULT_HOLIDAY_LOCALE = os.getenv('QUICKDATES_DEFAULT_HOLIDAY_LOCALE', 'US').strip() or 'US'

# Date ordering preference for ambiguous numeric dates: 'DMY' or 'MDY'.
# Passed through to dateparser's DATE_ORDER setting.
DATE_ORDER = os.getenv('DATE_ORDER', 'MDY').upper()

# Suggestion list limits.
MAX_SUGGESTIONS = 15
MAX_HOLIDAY_SUGGESTIONS = 5
# Holiday substring generator only fires from this query length on.
MIN_HOLIDAY_QUERY_LENGTH = 2

# Largest token window considered around the cursor.
try:
    MAX_PHRASE_WORDS = int(os.getenv('QUICKDATES_MAX_PHRASE_WORDS', '7'))
except Exception:
    MAX_PHRASE_WORDS = 7

# Lifetime of memoized parse results. Inherently relative phrases are never
# memoized regardless of this value. Set to 0 to disable memoization.
try:
    PARSE_MEMO_SECONDS = float(os.getenv('QUICKDATES_PARSE_MEMO_SECONDS', '2'))
except Exception:
    PARSE_MEMO_SECONDS = 2.0
PARSE_MEMO_SIZE = 256

# Moment-style display patterns.
DEFAULT_DAILY_NOTE_FORMAT = 'YYYY-MM-DD'
DEFAULT_ALTERNATE_FORMAT = 'dddd, MMMM Do YYYY'

LOG_LEVEL = os.getenv('QUICKDATES_LOG_LEVEL', 'INFO').upper()

# When true, /parse responses include the enhanced text handed to the grammar.
DEBUG_PARSE = _trueish(os.getenv('QUICKDATES_DEBUG_PARSE', '0'))


# Optional local overrides: define variables in quickdates/local_config.py to
# override the defaults above without changing versioned config.
try:
    from .local_config import *  # type: ignore  # noqa: F401,F403
except ImportError:
    # No local overrides present; proceed with defaults.
    pass
