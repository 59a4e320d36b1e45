"""Attendance compliance against the daily plan.

Rules are applied in order; the first match wins:

  1. no plan            → sin_planificacion
  2. plan REST          → franco
  3. plan ABSENT        → ausente (absence reason as note)
  4. plan WORKING       → compare actual vs planned entry/exit in whole
                          minutes (actual − planned, negative = early)

Tolerances: entry ok iff −60 ≤ Δ ≤ +30, exit ok iff −30 ≤ Δ ≤ +120.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import NamedTuple, Optional

from jornadas.common.constants import (
    ENTRY_EARLY_TOLERANCE_MINUTES,
    ENTRY_LATE_TOLERANCE_MINUTES,
    EXIT_EARLY_TOLERANCE_MINUTES,
    EXIT_LATE_TOLERANCE_MINUTES,
    ComplianceStatus,
    PlanStatus,
)
from jornadas.common.timeutils import whole_minutes
from jornadas.compliance.schemas import AttendanceFacts, ComplianceResult, PlannedShift

NOTE_NO_PUNCHES = "no punches"
NOTE_NO_EXIT = "no exit recorded"
NOTE_NO_ENTRY = "no entry recorded"
NOTE_ENTRY = "entry discrepancy"
NOTE_EXIT = "exit discrepancy"
NOTE_BOTH = "entry and exit discrepancy"


class SideCheck(NamedTuple):
    ok: Optional[bool]
    delta_minutes: Optional[int]


def _truncate_to_minute(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(second=0, microsecond=0)


def delta_minutes(actual: datetime, planned: datetime) -> int:
    """Whole minutes between minute-truncated instants (actual − planned)."""
    return whole_minutes(_truncate_to_minute(actual) - _truncate_to_minute(planned))


def _check_side(
    actual: Optional[datetime],
    planned: Optional[datetime],
    early: int,
    late: int,
) -> SideCheck:
    if actual is None:
        return SideCheck(None, None)
    if planned is None:
        # WORKING without a planned time: cannot be confirmed
        return SideCheck(False, None)
    delta = delta_minutes(actual, planned)
    return SideCheck(-early <= delta <= late, delta)


def check_entry(actual: Optional[datetime], planned: Optional[datetime]) -> SideCheck:
    return _check_side(
        actual, planned, ENTRY_EARLY_TOLERANCE_MINUTES, ENTRY_LATE_TOLERANCE_MINUTES
    )


def check_exit(actual: Optional[datetime], planned: Optional[datetime]) -> SideCheck:
    return _check_side(
        actual, planned, EXIT_EARLY_TOLERANCE_MINUTES, EXIT_LATE_TOLERANCE_MINUTES
    )


def evaluate_compliance(
    employee_id: int,
    work_date: date,
    plan: Optional[PlannedShift],
    facts: Optional[AttendanceFacts] = None,
) -> ComplianceResult:
    """Evaluate one ``(employee_id, work_date)`` key."""
    facts = facts or AttendanceFacts()

    def result(status: ComplianceStatus, **fields) -> ComplianceResult:
        return ComplianceResult(
            employee_id=employee_id, date=work_date, status=status, **fields
        )

    if plan is None:
        return result(ComplianceStatus.sin_planificacion)
    if plan.status == PlanStatus.rest:
        return result(ComplianceStatus.franco)
    if plan.status == PlanStatus.absent:
        return result(ComplianceStatus.ausente, notes=plan.absence_reason)

    if not facts.has_any:
        return result(ComplianceStatus.no_determinar, notes=NOTE_NO_PUNCHES)

    entry = check_entry(facts.actual_entry, plan.planned_entry)
    exit_ = check_exit(facts.actual_exit, plan.planned_exit)
    sides = dict(
        entry_ok=entry.ok,
        exit_ok=exit_.ok,
        entry_delta_minutes=entry.delta_minutes,
        exit_delta_minutes=exit_.delta_minutes,
    )

    if facts.actual_exit is None:
        return result(ComplianceStatus.no_determinar, notes=NOTE_NO_EXIT, **sides)
    if facts.actual_entry is None:
        return result(ComplianceStatus.no_determinar, notes=NOTE_NO_ENTRY, **sides)

    if entry.ok and exit_.ok:
        return result(ComplianceStatus.cumplido, **sides)

    if not entry.ok and not exit_.ok:
        note = NOTE_BOTH
    elif not entry.ok:
        note = NOTE_ENTRY
    else:
        note = NOTE_EXIT
    return result(ComplianceStatus.no_determinar, notes=note, **sides)
