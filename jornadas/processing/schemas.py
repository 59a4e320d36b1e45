"""Processing schemas: pipeline inputs/outputs, run report, API models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from jornadas.calendar.schemas import HolidayEntry
from jornadas.common.constants import (
    ComplianceStatus,
    DayType,
    InconsistencyType,
    ShiftLetter,
)
from jornadas.compliance.schemas import ComplianceResult, PlannedShift
from jornadas.identity.schemas import IdentifierLink, IdentityConflict
from jornadas.overtime.concepts import ConceptLine
from jornadas.overtime.schemas import ClassifiedHours
from jornadas.sessions.schemas import InconsistencyFlag, RawPunch, WorkSession


# ═════════════════════════════════════════════════════════════════════
# Pipeline
# ═════════════════════════════════════════════════════════════════════


class PipelineInputs(BaseModel):
    """Everything one pure pipeline run needs."""

    model_config = ConfigDict(frozen=True)

    date_from: date
    date_to: date
    punches: list[RawPunch] = Field(default_factory=list)
    links: list[IdentifierLink] = Field(default_factory=list)
    plans: list[PlannedShift] = Field(default_factory=list)
    holidays: list[HolidayEntry] = Field(default_factory=list)
    employee_ids: Optional[list[int]] = None
    as_of: Optional[date] = None

    @model_validator(mode="after")
    def _check_period(self) -> PipelineInputs:
        if self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self


class DayOutcome(BaseModel):
    """Derived facts for one ``(employee_id, work_date)`` key."""

    model_config = ConfigDict(frozen=True)

    employee_id: int
    work_date: date
    day_type: DayType
    jornada_hours: float
    session: Optional[WorkSession] = None
    hours: Optional[ClassifiedHours] = None
    shift: Optional[ShiftLetter] = None
    concepts: list[ConceptLine] = Field(default_factory=list)
    compliance: ComplianceResult
    flags: list[InconsistencyFlag] = Field(default_factory=list)


class RecordError(BaseModel):
    """A failure isolated to one employee (or key) during a run."""

    model_config = ConfigDict(frozen=True)

    employee_id: int
    work_date: Optional[date] = None
    error_type: str
    detail: str


class ProcessingReport(BaseModel):
    """Counters and collected errors of a run; accumulates across pages."""

    date_from: date
    date_to: date
    employees_processed: int = 0
    processed_keys: int = 0
    sessions: int = 0
    flags: int = 0
    discarded_pairings: int = 0
    ignored_entries: int = 0
    unresolved_punches: int = 0
    collisions: int = 0
    identity_conflicts: list[IdentityConflict] = Field(default_factory=list)
    errors: list[RecordError] = Field(default_factory=list)
    pages: int = 0
    next_cursor: Optional[int] = None
    completed: bool = False
    dry_run: bool = False

    def absorb(self, other: ProcessingReport) -> None:
        """Add *other*'s counters into this report."""
        for name in (
            "employees_processed",
            "processed_keys",
            "sessions",
            "flags",
            "discarded_pairings",
            "ignored_entries",
            "unresolved_punches",
            "collisions",
        ):
            setattr(self, name, getattr(self, name) + getattr(other, name))
        known = {c.identifier_id for c in self.identity_conflicts}
        self.identity_conflicts.extend(
            c for c in other.identity_conflicts if c.identifier_id not in known
        )
        self.errors.extend(other.errors)


class PipelineResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcomes: list[DayOutcome] = Field(default_factory=list)
    report: ProcessingReport


# ═════════════════════════════════════════════════════════════════════
# API request / response models
# ═════════════════════════════════════════════════════════════════════


class RegenerateRequest(BaseModel):
    date_from: date
    date_to: date
    employee_ids: Optional[list[int]] = Field(
        None, description="Restrict the run to these employees"
    )
    dry_run: bool = False


class DayRequest(BaseModel):
    date: date
    employee_ids: Optional[list[int]] = None
    dry_run: bool = False


class HalfMonthRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    half: Literal[1, 2]
    dry_run: bool = False


class FlagResolveRequest(BaseModel):
    resolved_by: str = Field(..., min_length=1, max_length=100)
    note: Optional[str] = Field(None, max_length=2000)


class WorkDayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: int
    work_date: date
    day_type: DayType
    shift_letter: Optional[str] = None
    entry_at: datetime
    exit_at: Optional[datetime] = None
    duration_hours: float
    jornada_hours: float
    normal_hours: float
    extra_50_diurnal: float
    extra_50_nocturnal: float
    extra_100_diurnal: float
    extra_100_nocturnal: float
    normal_hours_displaced_to_100: float


class ComplianceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: int
    date: date
    status: ComplianceStatus
    entry_ok: Optional[bool] = None
    exit_ok: Optional[bool] = None
    entry_delta_minutes: Optional[int] = None
    exit_delta_minutes: Optional[int] = None
    notes: Optional[str] = None
    manual_override: bool = False


class FlagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: int
    work_date: date
    flag_type: InconsistencyType
    detail: Optional[str] = None
    occurred_at: Optional[datetime] = None
    is_resolved: bool = False
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_note: Optional[str] = None
