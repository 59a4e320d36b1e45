"""Pure reconciliation pipeline.

    punches ─► identity ─► pairing ─► consolidation ─► grid classification
                                                   └─► compliance vs plan

No I/O happens here: callers load the inputs, call :func:`run_pipeline` and
persist the outcomes. Identical inputs always produce identical outcomes,
whatever the order punches, plans or links arrive in.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from jornadas.calendar.service import HolidaySet, expected_jornada_hours
from jornadas.common.constants import (
    PERSISTED_FLAG_TYPES,
    InconsistencyType,
    PlanStatus,
)
from jornadas.compliance.evaluator import evaluate_compliance
from jornadas.compliance.schemas import AttendanceFacts, PlannedShift
from jornadas.config import Settings
from jornadas.consolidation.policy import consolidate_sessions
from jornadas.identity.service import IdentityMap
from jornadas.overtime.classifier import GridOvertimeClassifier
from jornadas.overtime.concepts import concept_lines, shift_letter
from jornadas.processing.schemas import (
    DayOutcome,
    PipelineInputs,
    PipelineResult,
    ProcessingReport,
    RecordError,
)
from jornadas.sessions.resolver import ShiftAssignmentResolver
from jornadas.sessions.schemas import DayPunches, InconsistencyFlag, RawPunch, WorkSession

logger = logging.getLogger(__name__)


def shard_of(employee_id: int, shard_count: int) -> int:
    """Stable shard index of *employee_id* among *shard_count* workers."""
    if shard_count < 1:
        raise ValueError("shard_count must be >= 1")
    return employee_id % shard_count


def merge_flags(flags: Iterable[InconsistencyFlag]) -> list[InconsistencyFlag]:
    """One flag per ``(employee_id, work_date, flag_type)``, earliest occurrence first."""
    grouped: dict[tuple, list[InconsistencyFlag]] = defaultdict(list)
    for flag in flags:
        grouped[(flag.employee_id, flag.work_date, flag.flag_type.value)].append(flag)

    merged: list[InconsistencyFlag] = []
    for key in sorted(grouped):
        group = sorted(
            grouped[key],
            key=lambda f: (f.occurred_at is None, f.occurred_at, f.detail or ""),
        )
        first = group[0]
        if len(group) > 1:
            first = first.model_copy(
                update={"detail": f"{first.detail} (x{len(group)})"}
            )
        merged.append(first)
    return merged


class _EmployeeRun:
    """Pipeline steps for one employee, sharing the run-wide collaborators."""

    def __init__(
        self,
        *,
        date_from: date,
        date_to: date,
        holidays: HolidaySet,
        settings: Settings,
        as_of: Optional[date],
    ) -> None:
        self.date_from = date_from
        self.date_to = date_to
        self.holidays = holidays
        self.settings = settings
        self.as_of = as_of
        self.tz = settings.tz
        self.resolver = ShiftAssignmentResolver(
            self.tz,
            self.jornada_for,
            max_session_hours=settings.MAX_SESSION_HOURS,
            missing_exit_policy=settings.MISSING_EXIT_POLICY,
        )
        self.classifier = GridOvertimeClassifier(self.tz)

    def jornada_for(self, day: date) -> float:
        return expected_jornada_hours(self.holidays.context(day).day_type, self.settings)

    def _is_future(self, day: date) -> bool:
        return self.as_of is not None and day > self.as_of

    def run(
        self,
        employee_id: int,
        punches: list[RawPunch],
        plans: dict[date, PlannedShift],
        report: ProcessingReport,
    ) -> list[DayOutcome]:
        resolution = self.resolver.resolve(
            employee_id, punches, date_from=self.date_from, date_to=self.date_to
        )
        consolidation = consolidate_sessions(resolution.sessions)

        report.sessions += len(consolidation.sessions)
        report.discarded_pairings += len(resolution.discarded)
        report.ignored_entries += resolution.ignored_entries
        report.collisions += len(consolidation.collisions)

        sessions = {s.work_date: s for s in consolidation.sessions}
        day_punches = {d.work_date: d for d in resolution.day_punches}
        flags_by_date: dict[date, list[InconsistencyFlag]] = defaultdict(list)
        for flag in [*resolution.flags, *consolidation.flags]:
            flags_by_date[flag.work_date].append(flag)

        dates = sorted(set(plans) | set(sessions) | set(flags_by_date))
        outcomes: list[DayOutcome] = []
        for work_date in dates:
            outcomes.append(
                self._day(
                    employee_id,
                    work_date,
                    sessions.get(work_date),
                    plans.get(work_date),
                    day_punches.get(work_date),
                    flags_by_date.get(work_date, []),
                )
            )
        return outcomes

    def _day(
        self,
        employee_id: int,
        work_date: date,
        session: Optional[WorkSession],
        plan: Optional[PlannedShift],
        punches: Optional[DayPunches],
        flags: list[InconsistencyFlag],
    ) -> DayOutcome:
        context = self.holidays.context(work_date)
        jornada = expected_jornada_hours(context.day_type, self.settings)

        facts = AttendanceFacts()
        if punches is not None:
            facts = AttendanceFacts(
                actual_entry=punches.first_entry, actual_exit=punches.last_exit
            )

        day_flags = list(flags)
        if (
            plan is not None
            and plan.status == PlanStatus.working
            and not facts.has_any
            and not self._is_future(work_date)
        ):
            day_flags.append(
                InconsistencyFlag(
                    employee_id=employee_id,
                    work_date=work_date,
                    flag_type=InconsistencyType.no_punches,
                    detail="Planned working day without punches",
                )
            )

        hours = shift = None
        concepts = []
        if session is not None:
            hours = self.classifier.classify(session, jornada, context)
            shift = shift_letter(session.entry_at, self.tz)
            concepts = concept_lines(hours, shift)

        return DayOutcome(
            employee_id=employee_id,
            work_date=work_date,
            day_type=context.day_type,
            jornada_hours=jornada,
            session=session,
            hours=hours,
            shift=shift,
            concepts=concepts,
            compliance=evaluate_compliance(employee_id, work_date, plan, facts),
            flags=[
                f for f in merge_flags(day_flags) if f.flag_type in PERSISTED_FLAG_TYPES
            ],
        )


def run_pipeline(inputs: PipelineInputs, settings: Settings) -> PipelineResult:
    """Derive every key of the period for the selected employees."""
    identity = IdentityMap.from_links(inputs.links)
    holidays = HolidaySet(inputs.holidays)
    grouped, unresolved = identity.group_punches(inputs.punches)

    plans: dict[int, dict[date, PlannedShift]] = defaultdict(dict)
    for plan in inputs.plans:
        if inputs.date_from <= plan.date <= inputs.date_to:
            plans[plan.employee_id][plan.date] = plan

    if inputs.employee_ids is not None:
        employee_ids = sorted(set(inputs.employee_ids))
    else:
        employee_ids = sorted(set(identity.employee_ids) | set(plans))

    report = ProcessingReport(
        date_from=inputs.date_from,
        date_to=inputs.date_to,
        unresolved_punches=unresolved,
        identity_conflicts=identity.conflicts,
    )
    employee_run = _EmployeeRun(
        date_from=inputs.date_from,
        date_to=inputs.date_to,
        holidays=holidays,
        settings=settings,
        as_of=inputs.as_of,
    )

    outcomes: list[DayOutcome] = []
    for employee_id in employee_ids:
        partial = ProcessingReport(date_from=inputs.date_from, date_to=inputs.date_to)
        try:
            employee_outcomes = employee_run.run(
                employee_id,
                grouped.get(employee_id, []),
                plans.get(employee_id, {}),
                partial,
            )
        except Exception as exc:
            logger.warning(
                "Employee %s: processing failed (%s); skipped", employee_id, exc,
                exc_info=True,
            )
            report.errors.append(
                RecordError(
                    employee_id=employee_id,
                    error_type=type(exc).__name__,
                    detail=str(exc),
                )
            )
            continue

        partial.employees_processed = 1
        partial.processed_keys = len(employee_outcomes)
        partial.flags = sum(len(o.flags) for o in employee_outcomes)
        report.absorb(partial)
        outcomes.extend(employee_outcomes)

    outcomes.sort(key=lambda o: (o.employee_id, o.work_date))
    return PipelineResult(outcomes=outcomes, report=report)
