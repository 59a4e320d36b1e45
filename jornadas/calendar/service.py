"""Day-type classification and expected jornada lengths."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from jornadas.calendar.schemas import DayTypeContext, HolidayEntry
from jornadas.common.constants import DayType
from jornadas.config import Settings

SATURDAY = 5
SUNDAY = 6


def classify_day(day: date, is_holiday: bool) -> DayType:
    """Holiday wins over the weekday; otherwise Saturday / Sunday / weekday."""
    if is_holiday:
        return DayType.holiday
    weekday = day.weekday()
    if weekday == SUNDAY:
        return DayType.sunday
    if weekday == SATURDAY:
        return DayType.saturday
    return DayType.weekday


class HolidaySet:
    """Holiday lookup. Workable holidays are ordinary days."""

    def __init__(self, entries: Optional[Iterable[HolidayEntry]] = None) -> None:
        self._entries: dict[date, HolidayEntry] = {}
        for entry in entries or ():
            self._entries[entry.date] = entry

    def is_holiday(self, day: date) -> bool:
        entry = self._entries.get(day)
        return entry is not None and not entry.is_workable

    def get(self, day: date) -> Optional[HolidayEntry]:
        return self._entries.get(day)

    def context(self, day: date) -> DayTypeContext:
        holiday = self.is_holiday(day)
        return DayTypeContext(
            date=day,
            weekday=day.weekday(),
            is_holiday=holiday,
            day_type=classify_day(day, holiday),
        )

    def __contains__(self, day: date) -> bool:
        return self.is_holiday(day)

    def __len__(self) -> int:
        return len(self._entries)


def expected_jornada_hours(day_type: DayType, settings: Settings) -> float:
    """Default ordinary jornada for *day_type*."""
    return {
        DayType.weekday: settings.JORNADA_WEEKDAY_HOURS,
        DayType.saturday: settings.JORNADA_SATURDAY_HOURS,
        DayType.sunday: settings.JORNADA_SUNDAY_HOURS,
        DayType.holiday: settings.JORNADA_HOLIDAY_HOURS,
    }[day_type]
