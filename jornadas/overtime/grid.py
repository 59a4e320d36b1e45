"""The 30-minute grid.

Overtime is not continuous: the day is cut into slots aligned to the local
:00/:30 boundaries and a slot pays 0.5h only when the session covers it end
to end (``entry <= slot.start and exit >= slot.end``). Arriving one minute
after a slot starts, or leaving one minute before it ends, forfeits it.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterator, NamedTuple
from zoneinfo import ZoneInfo

from jornadas.common.constants import NIGHT_END_HOUR, NIGHT_START_HOUR, SLOT_MINUTES
from jornadas.common.timeutils import align_to_slot, local_hour

SLOT = timedelta(minutes=SLOT_MINUTES)


class GridSlot(NamedTuple):
    start: datetime
    end: datetime


def iter_slots(window_start: datetime, until: datetime, tz: ZoneInfo) -> Iterator[GridSlot]:
    """Grid slots from the first boundary at/after *window_start* while they start before *until*."""
    slot_start = align_to_slot(window_start, tz)
    while slot_start < until:
        yield GridSlot(slot_start, slot_start + SLOT)
        slot_start += SLOT


def is_covered(slot: GridSlot, entry_at: datetime, exit_at: datetime) -> bool:
    return entry_at <= slot.start and exit_at >= slot.end


def payable_slots(
    entry_at: datetime,
    exit_at: datetime,
    window_start: datetime,
    tz: ZoneInfo,
) -> list[GridSlot]:
    """Fully covered slots of ``[entry_at, exit_at]`` from *window_start* on."""
    return [
        slot
        for slot in iter_slots(window_start, exit_at, tz)
        if is_covered(slot, entry_at, exit_at)
    ]


def is_nocturnal(slot: GridSlot, tz: ZoneInfo) -> bool:
    """Night band is [21:00, 06:00) by the slot's local start hour."""
    hour = local_hour(slot.start, tz)
    return hour >= NIGHT_START_HOUR or hour < NIGHT_END_HOUR
