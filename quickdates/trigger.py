"""Find the query typed after a trigger phrase (e.g. '@tomorrow')."""
from dataclasses import dataclass
import logging
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerContext:
    """Where the trigger starts, where the replaceable range ends and the query.

    ``insert_space_on_open`` is set when the cursor sits right after a bare
    trigger; the host inserts a space so the user can keep typing.
    """
    start: int
    end: int
    query: str
    insert_space_on_open: bool = False


def parse_trigger_context(line: str, cursor: int, trigger_phrase: str = '@', *,
                          trigger_happy: bool = False,
                          last_replaced_trigger_start: int | None = None,
                          last_insertion_end: int | None = None) -> Optional[TriggerContext]:
    """Return the trigger context for the cursor on ``line``, or None.

    Only the last trigger before the cursor is considered. Unless
    ``trigger_happy`` is set the trigger must stand alone, i.e. be flanked by
    whitespace or the line boundaries. A trigger at or before one that was
    just replaced is ignored while the cursor sits at the end of that
    insertion, so a completed phrase does not immediately reopen suggestions.
    """
    if not trigger_phrase or line is None or cursor is None:
        return None
    cursor = max(0, min(cursor, len(line)))
    prefix = line[:cursor]
    idx = prefix.rfind(trigger_phrase)
    if idx == -1:
        return None
    after = idx + len(trigger_phrase)

    if not trigger_happy:
        if idx > 0 and not line[idx - 1].isspace():
            return None
        if after < len(line) and not line[after].isspace():
            return None

    if cursor < after:
        return None

    if (last_replaced_trigger_start is not None and last_insertion_end is not None
            and cursor == last_insertion_end and idx <= last_replaced_trigger_start):
        logger.debug('parse_trigger_context: suppressed retrigger at %d', idx)
        return None

    if cursor == after and (after == len(line) or line[after] != ' '):
        return TriggerContext(start=idx, end=after, query='', insert_space_on_open=True)

    typed = line[after:cursor]
    if typed.startswith(' '):
        typed = typed[1:]
    return TriggerContext(start=idx, end=cursor, query=typed)
