from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from . import config


class ContentFormat(str, Enum):
    """Presentation mode selecting which display pattern applies."""
    PRIMARY = 'Primary format'
    ALTERNATE = 'Alternate format'
    DAILY_NOTE = 'Daily note format'
    SUGGESTION_TEXT = 'Use suggestion text'


@dataclass(frozen=True)
class TemporalExpression:
    """A substring of a line believed to denote a date/time.

    ``start``/``end`` are a half-open character range into the line the
    expression was located in, so ``line[start:end] == text``.
    """
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class DateOccurrence:
    text: str
    start: int
    end: int
    instant: datetime


class FormatSettings(BaseModel):
    """User format preferences supplied by the host's settings store."""
    primary_format: str = ''
    alternate_format: str = config.DEFAULT_ALTERNATE_FORMAT
    # Empty disables time augmentation entirely.
    time_format: str = ''
    time_separator: str = ' '
    # Render only the time when the phrase has a time and resolves to today.
    time_only: bool = False
    initial_suggestions: List[str] = Field(default_factory=lambda: ['Today', 'Tomorrow', 'Yesterday'])
    trigger_phrase: str = '@'
    trigger_happy: bool = False
