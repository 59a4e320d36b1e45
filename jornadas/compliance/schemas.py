"""Compliance schemas: planned shift, observed facts, evaluation result."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from jornadas.common.constants import ComplianceStatus, PlanStatus


class PlannedShift(BaseModel):
    """One employee's plan for one civil date, as supplied by planning."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    employee_id: int
    date: date
    status: PlanStatus
    absence_reason: Optional[str] = Field(None, max_length=100)
    planned_entry: Optional[AwareDatetime] = None
    planned_exit: Optional[AwareDatetime] = None


class AttendanceFacts(BaseModel):
    """First entry and last exit the clock shows for a key, whatever the pairing."""

    model_config = ConfigDict(frozen=True)

    actual_entry: Optional[AwareDatetime] = None
    actual_exit: Optional[AwareDatetime] = None

    @property
    def has_any(self) -> bool:
        return self.actual_entry is not None or self.actual_exit is not None


class ComplianceResult(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    employee_id: int
    date: date
    status: ComplianceStatus
    entry_ok: Optional[bool] = None
    exit_ok: Optional[bool] = None
    entry_delta_minutes: Optional[int] = None
    exit_delta_minutes: Optional[int] = None
    notes: Optional[str] = None
