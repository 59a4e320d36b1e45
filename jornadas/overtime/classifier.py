"""Grid overtime classifier.

Turns one work session, its expected ordinary jornada and the day-type
context into :class:`ClassifiedHours`.

Rules:
  - Ordinary pass (weekday, Saturday before 13:00): only time past
    ``entry + jornada`` is overtime, paid per fully covered grid slot at 50%.
  - Critical period (Sunday, Saturday from 13:00, holiday): the whole
    session is paid at 100%, ordinary jornada included; ``normal_hours`` is
    0 and ``normal_hours_displaced_to_100`` keeps what would have been
    ordinary time.
  - A Saturday session crossing 13:00 is classified in two passes, ordinary
    before the trigger and critical after it.
  - A session that reaches into Sunday is critical as a whole.
  - Diurnal vs nocturnal is decided per slot by its local start hour.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from jornadas.calendar.schemas import DayTypeContext
from jornadas.common.constants import (
    NIGHT_END_HOUR,
    NIGHT_START_HOUR,
    SATURDAY_OVERRIDE_TIME,
    DayType,
    HourBucket,
)
from jornadas.common.timeutils import (
    floor_to_half,
    hours_between,
    local_datetime,
    local_midnight,
)
from jornadas.overtime.grid import GridSlot, SLOT, is_nocturnal, payable_slots
from jornadas.overtime.schemas import ClassifiedHours, ClassifiedSlot
from jornadas.sessions.schemas import WorkSession

SATURDAY = 5
SUNDAY = 6


@dataclass
class _Tally:
    """Mutable accumulator; slot counts keep the arithmetic exact."""

    normal: float = 0.0
    slots: dict[HourBucket, int] = field(default_factory=dict)
    detail: list[ClassifiedSlot] = field(default_factory=list)
    displaced: float = 0.0

    def add(self, slot: GridSlot, bucket: HourBucket) -> None:
        self.slots[bucket] = self.slots.get(bucket, 0) + 1
        self.detail.append(ClassifiedSlot(start=slot.start, end=slot.end, bucket=bucket))

    def hours(self, *buckets: HourBucket) -> float:
        return sum(self.slots.get(b, 0) for b in buckets) / 2

    def build(self, keep_slots: bool) -> ClassifiedHours:
        return ClassifiedHours(
            normal_hours=self.normal,
            extra_50_diurnal=self.hours(HourBucket.extra_50_diurnal),
            extra_50_nocturnal=self.hours(HourBucket.extra_50_nocturnal),
            extra_100_diurnal=self.hours(HourBucket.extra_100_diurnal),
            extra_100_nocturnal=self.hours(HourBucket.extra_100_nocturnal),
            normal_hours_displaced_to_100=self.displaced,
            slots=self.detail if keep_slots else [],
        )


class GridOvertimeClassifier:
    """Pure classifier; performs no I/O."""

    def __init__(self, tz: ZoneInfo, *, keep_slots: bool = True) -> None:
        self.tz = tz
        self.keep_slots = keep_slots

    # ── Local-time predicates ───────────────────────────────────────

    def _local(self, instant: datetime) -> datetime:
        return instant.astimezone(self.tz)

    def _saturday_trigger(self, entry_at: datetime, exit_at: datetime) -> Optional[datetime]:
        """The Saturday 13:00 instant strictly inside the session, if any."""
        first = self._local(entry_at).date()
        last = self._local(exit_at).date()
        day = first
        while day <= last:
            if day.weekday() == SATURDAY:
                trigger = local_datetime(day, SATURDAY_OVERRIDE_TIME, self.tz)
                if entry_at < trigger < exit_at:
                    return trigger
            day += timedelta(days=1)
        return None

    def _starts_critical(self, entry_at: datetime, context: DayTypeContext) -> bool:
        if context.day_type in (DayType.sunday, DayType.holiday):
            return True
        local = self._local(entry_at)
        if local.weekday() == SUNDAY:
            return True
        return local.weekday() == SATURDAY and local.time() >= SATURDAY_OVERRIDE_TIME

    def _touches_sunday(self, entry_at: datetime, exit_at: datetime) -> bool:
        local_exit = self._local(exit_at)
        if local_exit.weekday() != SUNDAY:
            return False
        return exit_at > local_midnight(local_exit.date(), self.tz) and entry_at < exit_at

    def _entry_is_nocturnal(self, entry_at: datetime) -> bool:
        hour = self._local(entry_at).hour
        return hour >= NIGHT_START_HOUR or hour < NIGHT_END_HOUR

    # ── Passes ──────────────────────────────────────────────────────

    def _ordinary_pass(
        self,
        tally: _Tally,
        entry_at: datetime,
        exit_at: datetime,
        jornada_hours: float,
    ) -> None:
        duration = hours_between(entry_at, exit_at)
        tally.normal += floor_to_half(min(jornada_hours, duration))

        overtime_start = entry_at + timedelta(hours=jornada_hours)
        if exit_at <= overtime_start:
            return
        for slot in payable_slots(entry_at, exit_at, overtime_start, self.tz):
            bucket = (
                HourBucket.extra_50_nocturnal
                if is_nocturnal(slot, self.tz)
                else HourBucket.extra_50_diurnal
            )
            tally.add(slot, bucket)

    def _critical_pass(
        self,
        tally: _Tally,
        entry_at: datetime,
        exit_at: datetime,
    ) -> float:
        """Pay every covered slot at 100%; returns the hours paid."""
        paid = 0
        for slot in payable_slots(entry_at, exit_at, entry_at, self.tz):
            bucket = (
                HourBucket.extra_100_nocturnal
                if is_nocturnal(slot, self.tz)
                else HourBucket.extra_100_diurnal
            )
            tally.add(slot, bucket)
            paid += 1
        return paid / 2

    def _credit_only(
        self,
        session: WorkSession,
        context: DayTypeContext,
    ) -> ClassifiedHours:
        """Open session: nothing can be verified on the grid, only the credit."""
        credit = floor_to_half(session.duration_hours)
        if not self._starts_critical(session.entry_at, context):
            return ClassifiedHours(normal_hours=credit)
        if self._entry_is_nocturnal(session.entry_at):
            return ClassifiedHours(
                extra_100_nocturnal=credit,
                normal_hours_displaced_to_100=credit,
            )
        return ClassifiedHours(
            extra_100_diurnal=credit,
            normal_hours_displaced_to_100=credit,
        )

    # ── Public API ──────────────────────────────────────────────────

    def classify(
        self,
        session: WorkSession,
        jornada_hours: float,
        context: DayTypeContext,
    ) -> ClassifiedHours:
        """Classify *session* under the rules of its day type."""

        if session.exit_at is None:
            return self._credit_only(session, context)

        entry_at, exit_at = session.entry_at, session.exit_at
        allowance = floor_to_half(jornada_hours)
        tally = _Tally()

        if self._starts_critical(entry_at, context) or self._touches_sunday(entry_at, exit_at):
            paid = self._critical_pass(tally, entry_at, exit_at)
            tally.displaced = min(paid, allowance)
            return tally.build(self.keep_slots)

        trigger = self._saturday_trigger(entry_at, exit_at)
        if trigger is None:
            self._ordinary_pass(tally, entry_at, exit_at, jornada_hours)
            return tally.build(self.keep_slots)

        # Saturday split: ordinary rules up to 13:00, full override after.
        self._ordinary_pass(tally, entry_at, trigger, jornada_hours)
        pre_normal = tally.normal
        paid = self._critical_pass(tally, trigger, exit_at)
        tally.displaced = min(paid, max(0.0, allowance - pre_normal))
        return tally.build(self.keep_slots)


def classify_session(
    session: WorkSession,
    jornada_hours: float,
    context: DayTypeContext,
    tz: ZoneInfo,
) -> ClassifiedHours:
    """Functional shortcut over :class:`GridOvertimeClassifier`."""
    return GridOvertimeClassifier(tz).classify(session, jornada_hours, context)


__all__ = ["GridOvertimeClassifier", "classify_session", "SLOT"]
