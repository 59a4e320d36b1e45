"""Punch and work-session value objects.

  - RawPunch          → one device event, as delivered by the punch feed
  - WorkSession       → a paired (or open) entry/exit attributed to a work date
  - InconsistencyFlag → advisory fact about the input data, for human review
  - DayPunches        → first entry and last exit attributed to a work date
  - ResolutionResult  → everything one pairing scan produced for an employee
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator

from jornadas.common.constants import MAX_SESSION_HOURS, InconsistencyType, PunchType


class RawPunch(BaseModel):
    """Immutable device event."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    identifier_id: str = Field(..., min_length=1, max_length=64)
    event_type: PunchType
    timestamp: AwareDatetime


class WorkSession(BaseModel):
    """An entry paired with its exit (or left open) and credited to ``work_date``."""

    model_config = ConfigDict(frozen=True)

    employee_id: int
    work_date: date
    entry_at: AwareDatetime
    exit_at: Optional[AwareDatetime] = None
    duration_hours: float = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> WorkSession:
        if self.exit_at is not None:
            if self.exit_at <= self.entry_at:
                raise ValueError("exit_at must be after entry_at")
            if self.duration_hours > MAX_SESSION_HOURS:
                raise ValueError(
                    f"complete sessions last at most {MAX_SESSION_HOURS:g}h"
                )
        return self

    @property
    def is_complete(self) -> bool:
        return self.exit_at is not None


class InconsistencyFlag(BaseModel):
    """A data-quality fact on one (employee, work_date) key."""

    model_config = ConfigDict(frozen=True)

    employee_id: int
    work_date: date
    flag_type: InconsistencyType
    detail: Optional[str] = None
    occurred_at: Optional[AwareDatetime] = None


class DayPunches(BaseModel):
    """Earliest ENTRY and latest EXIT punch attributed to ``work_date``.

    Counts every punch of the date, including those of pairings dropped as
    noise or as collisions, and lone exits.
    """

    model_config = ConfigDict(frozen=True)

    work_date: date
    first_entry: Optional[AwareDatetime] = None
    last_exit: Optional[AwareDatetime] = None


class DiscardedPairing(BaseModel):
    """An entry/exit pair dropped as device noise (non-positive or too long)."""

    model_config = ConfigDict(frozen=True)

    employee_id: int
    entry_at: AwareDatetime
    exit_at: AwareDatetime
    duration_hours: float


class ResolutionResult(BaseModel):
    """Output of one pairing scan for one employee."""

    model_config = ConfigDict(frozen=True)

    employee_id: int
    sessions: list[WorkSession] = Field(default_factory=list)
    flags: list[InconsistencyFlag] = Field(default_factory=list)
    discarded: list[DiscardedPairing] = Field(default_factory=list)
    day_punches: list[DayPunches] = Field(default_factory=list)
    ignored_entries: int = 0
