from contextlib import asynccontextmanager
from typing import List, Optional
import logging
import sys

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from . import config
from .commands import convert_all_dates, convert_phrase_at_cursor
from .formatting import format_for_display
from .holidays_cache import default_cache
from .models import ContentFormat, FormatSettings
from .suggestions import get_suggestions
from .text_search import locate_phrase_at_cursor
from .trigger import parse_trigger_context
from .utils import enhance_text, has_time_component, parse_all_occurrences, parse_date

logger = logging.getLogger(__name__)
# Ensure INFO-level messages from this module appear on the console when
# no handlers are configured.
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter('%(asctime)s %(levelname)s:%(name)s: %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))


@asynccontextmanager
async def lifespan(app: FastAPI):
    active = default_cache.set_locale(config.HOLIDAY_LOCALE)
    notice = default_cache.pop_notice()
    if notice:
        logger.warning(notice)
    logger.info('holiday locale at startup: %s', active or 'disabled')
    yield


app = FastAPI(lifespan=lifespan)


class TextRequest(BaseModel):
    text: str


class ParseResponse(BaseModel):
    text: str
    date: Optional[str]
    has_time: bool
    enhanced: Optional[str] = None


class Occurrence(BaseModel):
    text: str
    start: int
    end: int
    date: str


class LocateRequest(BaseModel):
    line: str
    cursor: int


class LocateResponse(BaseModel):
    text: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None


class SuggestRequest(BaseModel):
    query: str = ''
    seeds: Optional[List[str]] = None


class FormatRequest(BaseModel):
    text: str
    content_format: ContentFormat = ContentFormat.PRIMARY
    daily_note_format: Optional[str] = None
    settings: FormatSettings = FormatSettings()


class ConvertRequest(BaseModel):
    text: str
    cursor: Optional[int] = None
    content_format: ContentFormat = ContentFormat.PRIMARY
    daily_note_format: Optional[str] = None
    settings: FormatSettings = FormatSettings()


class LocaleRequest(BaseModel):
    locale: str = ''


class TriggerRequest(BaseModel):
    line: str
    cursor: int
    settings: FormatSettings = FormatSettings()
    last_replaced_trigger_start: Optional[int] = None
    last_insertion_end: Optional[int] = None


class TriggerResponse(BaseModel):
    start: Optional[int] = None
    end: Optional[int] = None
    query: Optional[str] = None
    insert_space_on_open: bool = False
    suggestions: List[str] = []


@app.post('/parse', response_model=ParseResponse)
async def api_parse(req: TextRequest):
    """Resolve a single phrase; ``date`` is null when it doesn't parse."""
    dt = parse_date(req.text)
    return ParseResponse(
        text=req.text,
        date=dt.isoformat() if dt else None,
        has_time=has_time_component(req.text),
        enhanced=enhance_text(req.text.strip().lower()) if config.DEBUG_PARSE else None,
    )


@app.post('/parse_all', response_model=List[Occurrence])
async def api_parse_all(req: TextRequest):
    return [Occurrence(text=o.text, start=o.start, end=o.end, date=o.instant.isoformat())
            for o in parse_all_occurrences(req.text)]


@app.post('/locate', response_model=LocateResponse)
async def api_locate(req: LocateRequest):
    if req.cursor < 0 or req.cursor > len(req.line):
        raise HTTPException(status_code=400, detail='cursor out of range')
    found = locate_phrase_at_cursor(req.line, req.cursor)
    if found is None:
        return LocateResponse()
    return LocateResponse(text=found.text, start=found.start, end=found.end)


@app.post('/suggest', response_model=List[str])
async def api_suggest(req: SuggestRequest):
    seeds = req.seeds if req.seeds is not None else FormatSettings().initial_suggestions
    return get_suggestions(req.query, seeds)


@app.post('/format')
async def api_format(req: FormatRequest):
    dt = parse_date(req.text)
    return {
        'text': format_for_display(req.text, dt, req.content_format, req.daily_note_format, req.settings),
        'resolved': dt is not None,
    }


@app.post('/convert')
async def api_convert(req: ConvertRequest):
    """Rewrite the phrase at ``cursor``, or every date in ``text`` when no cursor is given."""
    if req.cursor is None:
        out = convert_all_dates(req.text, req.settings, req.content_format, req.daily_note_format)
        return {'text': out, 'cursor': None}
    if req.cursor < 0 or req.cursor > len(req.text):
        raise HTTPException(status_code=400, detail='cursor out of range')
    conv = convert_phrase_at_cursor(req.text, req.cursor, req.settings, req.content_format,
                                    req.daily_note_format)
    if conv is None:
        raise HTTPException(status_code=422, detail='no date-like text found at cursor')
    return {'text': conv.line, 'cursor': conv.cursor}


@app.get('/holidays')
async def api_holidays():
    return {'locale': default_cache.locale, 'names': default_cache.holiday_names()}


@app.post('/holidays/locale')
async def api_set_locale(req: LocaleRequest):
    active = default_cache.set_locale(req.locale)
    return {'locale': active, 'notice': default_cache.pop_notice()}


@app.post('/trigger', response_model=TriggerResponse)
async def api_trigger(req: TriggerRequest):
    """Report the trigger before the cursor and the completions for what follows it."""
    if req.cursor < 0 or req.cursor > len(req.line):
        raise HTTPException(status_code=400, detail='cursor out of range')
    ctx = parse_trigger_context(req.line, req.cursor, req.settings.trigger_phrase,
                                trigger_happy=req.settings.trigger_happy,
                                last_replaced_trigger_start=req.last_replaced_trigger_start,
                                last_insertion_end=req.last_insertion_end)
    if ctx is None:
        return TriggerResponse()
    return TriggerResponse(start=ctx.start, end=ctx.end, query=ctx.query,
                           insert_space_on_open=ctx.insert_space_on_open,
                           suggestions=get_suggestions(ctx.query, req.settings.initial_suggestions))
