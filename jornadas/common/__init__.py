"""Common module — shared utilities for Jornadas."""

from jornadas.common.constants import (
    DATE_FORMAT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TIMEZONE,
    MAX_PAGE_SIZE,
    PERSISTED_FLAG_TYPES,
    ComplianceStatus,
    DayType,
    HourBucket,
    InconsistencyType,
    MissingExitPolicy,
    PlanStatus,
    PunchType,
    ShiftLetter,
)
from jornadas.common.exceptions import (
    AppException,
    ConflictError,
    NotFoundException,
    ProcessingError,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Constants / Enums
    "ComplianceStatus",
    "DayType",
    "HourBucket",
    "InconsistencyType",
    "MissingExitPolicy",
    "PlanStatus",
    "PunchType",
    "ShiftLetter",
    "PERSISTED_FLAG_TYPES",
    "DATE_FORMAT",
    "DEFAULT_TIMEZONE",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "NotFoundException",
    "ProcessingError",
    "ValidationException",
    "register_exception_handlers",
]
