"""Render resolved dates under the user's display patterns.

Patterns use moment-style tokens ('YYYY-MM-DD', 'dddd, MMMM Do YYYY',
'HH:mm'), which pendulum formats natively.
"""
from datetime import datetime
import logging
import re

import pendulum

from . import config
from .models import ContentFormat, FormatSettings
from .utils import has_time_component, now_local, parse_date

logger = logging.getLogger(__name__)

# Heuristic: a pattern containing any of these already renders a time.
_TIME_TOKEN_RE = re.compile(r"[HhmsSaAZ]")


def render(instant: datetime, pattern: str) -> str:
    """Format ``instant`` with a moment-style ``pattern``."""
    return pendulum.instance(instant).format(pattern)


def _is_same_day(instant: datetime, now: datetime | None = None) -> bool:
    return instant.date() == (now or now_local()).date()


def base_pattern(content_format: ContentFormat, settings: FormatSettings,
                 daily_note_format: str | None = None) -> str:
    daily = daily_note_format or config.DEFAULT_DAILY_NOTE_FORMAT
    if content_format == ContentFormat.DAILY_NOTE:
        return daily
    if content_format == ContentFormat.ALTERNATE:
        return settings.alternate_format or config.DEFAULT_ALTERNATE_FORMAT
    return settings.primary_format or daily


def should_render_time_only(phrase_text: str, instant: datetime, settings: FormatSettings,
                            now: datetime | None = None) -> bool:
    return (settings.time_only
            and bool(settings.time_format and settings.time_format.strip())
            and has_time_component(phrase_text)
            and _is_same_day(instant, now))


def format_for_display(phrase_text: str, instant: datetime | None, content_format: ContentFormat,
                       daily_note_format: str | None = None, settings: FormatSettings | None = None,
                       *, now: datetime | None = None) -> str:
    """Return the display text for a resolved phrase.

    ``SUGGESTION_TEXT`` and unresolved instants return ``phrase_text`` as is.
    Otherwise the pattern chosen by ``content_format`` is applied and, when a
    time pattern is configured and the phrase mentions a time, the time is
    either rendered alone (same-day, time-only mode) or appended after the
    configured separator.
    """
    content_format = ContentFormat(content_format)
    if content_format == ContentFormat.SUGGESTION_TEXT:
        return phrase_text
    if instant is None:
        logger.debug('format_for_display: no date for %r, returning text', phrase_text)
        return phrase_text
    settings = settings or FormatSettings()

    pattern = base_pattern(content_format, settings, daily_note_format)
    formatted = render(instant, pattern)

    time_format = (settings.time_format or '').strip()
    if time_format and has_time_component(phrase_text):
        time_text = render(instant, settings.time_format)
        if settings.time_only and _is_same_day(instant, now):
            logger.debug('format_for_display: time only for %r -> %r', phrase_text, time_text)
            return time_text
        if not _TIME_TOKEN_RE.search(pattern):
            return f'{formatted}{settings.time_separator}{time_text}'

    return formatted


def get_date_preview(date_text: str, settings: FormatSettings | None = None, *,
                     use_alternate_format: bool = False, force_no_alias: bool = False,
                     force_daily_note_format: bool = False, daily_note_format: str | None = None) -> str:
    """Short preview of how ``date_text`` would render; '' if it doesn't parse.

    ``force_no_alias`` (without the daily-note override) means no alias text
    would be shown, so the preview is empty.
    """
    if not date_text:
        return ''
    settings = settings or FormatSettings()
    instant = parse_date(date_text)
    if instant is None:
        return ''
    if force_daily_note_format:
        fmt = ContentFormat.DAILY_NOTE
    elif force_no_alias:
        return ''
    elif use_alternate_format and settings.alternate_format:
        fmt = ContentFormat.ALTERNATE
    else:
        fmt = ContentFormat.PRIMARY
    return render(instant, base_pattern(fmt, settings, daily_note_format))
