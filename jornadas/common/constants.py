"""Enums and constants for Jornadas — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum
from datetime import time


# ── Punches ─────────────────────────────────────────────────────────

class PunchType(str, enum.Enum):
    entry = "E"
    exit = "S"


# ── Calendar ────────────────────────────────────────────────────────

class DayType(str, enum.Enum):
    weekday = "WEEKDAY"
    saturday = "SATURDAY"
    sunday = "SUNDAY"
    holiday = "HOLIDAY"


# ── Planning / compliance ───────────────────────────────────────────

class PlanStatus(str, enum.Enum):
    working = "WORKING"
    absent = "ABSENT"
    rest = "REST"


class ComplianceStatus(str, enum.Enum):
    cumplido = "cumplido"
    no_determinar = "no_determinar"
    sin_planificacion = "sin_planificacion"
    franco = "franco"
    ausente = "ausente"


# ── Inconsistencies ─────────────────────────────────────────────────

class InconsistencyType(str, enum.Enum):
    missing_entry = "missing-entry"
    missing_exit = "missing-exit"
    invalid_session = "invalid-session"
    no_punches = "no-punches"
    duplicate_session = "duplicate-session"
    identity_conflict = "identity-conflict"


# Flags written to storage. invalid-session is device noise: trace only.
PERSISTED_FLAG_TYPES: frozenset[InconsistencyType] = frozenset(
    {
        InconsistencyType.missing_entry,
        InconsistencyType.missing_exit,
        InconsistencyType.no_punches,
        InconsistencyType.duplicate_session,
    }
)


# ── Overtime ────────────────────────────────────────────────────────

class HourBucket(str, enum.Enum):
    normal = "normal"
    extra_50_diurnal = "extra_50_diurnal"
    extra_50_nocturnal = "extra_50_nocturnal"
    extra_100_diurnal = "extra_100_diurnal"
    extra_100_nocturnal = "extra_100_nocturnal"


class ShiftLetter(str, enum.Enum):
    morning = "M"
    afternoon = "T"
    night = "N"


class MissingExitPolicy(str, enum.Enum):
    optimistic = "optimistic"   # credit the day's expected jornada
    zero = "zero"               # credit nothing until corrected


# ── Pairing ─────────────────────────────────────────────────────────

MAX_SESSION_HOURS = 14.0       # longer pairings are device noise

# ── Grid / critical period ──────────────────────────────────────────

SLOT_MINUTES = 30
SLOT_HOURS = 0.5
NIGHT_START_HOUR = 21           # 21:00
NIGHT_END_HOUR = 6              # 06:00
SATURDAY_OVERRIDE_TIME = time(13, 0)

# Shift letter from the local entry hour
NIGHT_SHIFT_FROM_HOUR = 20
NIGHT_SHIFT_UNTIL_HOUR = 4
AFTERNOON_SHIFT_FROM_HOUR = 12

# ── Compliance tolerances (minutes, actual − planned) ──────────────

ENTRY_EARLY_TOLERANCE_MINUTES = 60
ENTRY_LATE_TOLERANCE_MINUTES = 30
EXIT_EARLY_TOLERANCE_MINUTES = 30
EXIT_LATE_TOLERANCE_MINUTES = 120

# ── Misc constants ──────────────────────────────────────────────────

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_TIMEZONE = "America/Argentina/Buenos_Aires"
MAX_PAGE_SIZE = 1000
DEFAULT_PAGE_SIZE = 200
