"""Civil-time helpers.

Every local decision (work-date attribution, day type, slot hour, the
Saturday 13:00 trigger) goes through these functions with an explicit
``ZoneInfo``. Arithmetic is always done on absolute instants; local wall
time is only read, never added to.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from jornadas.common.constants import SLOT_MINUTES
from jornadas.common.exceptions import ValidationException


def require_aware(value: datetime, field: str = "timestamp") -> datetime:
    """Reject naive datetimes; the process default zone is never assumed."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationException({field: ["Timestamp must be timezone-aware."]})
    return value


def local_date(instant: datetime, tz: ZoneInfo) -> date:
    """Civil date of *instant* in *tz*."""
    return require_aware(instant).astimezone(tz).date()


def local_hour(instant: datetime, tz: ZoneInfo) -> int:
    return require_aware(instant).astimezone(tz).hour


def local_datetime(day: date, at: time, tz: ZoneInfo) -> datetime:
    """The instant at which the wall clock in *tz* reads *day* *at*."""
    return datetime.combine(day, at, tzinfo=tz)


def local_midnight(day: date, tz: ZoneInfo) -> datetime:
    return local_datetime(day, time(0, 0), tz)


def align_to_slot(instant: datetime, tz: ZoneInfo) -> datetime:
    """Round *instant* up to the next local :00 or :30 boundary.

    An instant already on a boundary is returned unchanged.
    """
    local = require_aware(instant).astimezone(tz)
    past = timedelta(
        minutes=local.minute % SLOT_MINUTES,
        seconds=local.second,
        microseconds=local.microsecond,
    )
    if not past:
        return instant
    return instant + (timedelta(minutes=SLOT_MINUTES) - past)


def floor_to_half(hours: float) -> float:
    """Round *hours* down to the 0.5 grid (never negative)."""
    if hours <= 0:
        return 0.0
    return math.floor(hours * 2 + 1e-9) / 2


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


def padded_window(
    date_from: date,
    date_to: date,
    tz: ZoneInfo,
    *,
    pad_days: int = 1,
) -> tuple[datetime, datetime]:
    """Absolute ``[start, end)`` covering the period plus *pad_days* each side."""
    start = local_midnight(date_from - timedelta(days=pad_days), tz)
    end = local_midnight(date_to + timedelta(days=pad_days + 1), tz)
    return start, end
