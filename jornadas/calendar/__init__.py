"""Calendar module — holidays and day-type classification."""

from jornadas.calendar.service import HolidaySet, classify_day, expected_jornada_hours

__all__ = ["HolidaySet", "classify_day", "expected_jornada_hours"]
