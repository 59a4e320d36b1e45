"""Period recomputation test suite — paging, resume, sharding, dry runs,
flag lifecycle, period helpers. Runs on the in-memory repositories.
"""

from __future__ import annotations

from datetime import date

import pytest

from jornadas.common.constants import ComplianceStatus, InconsistencyType, PunchType
from jornadas.common.exceptions import ProcessingError, ValidationException
from jornadas.processing.service import (
    PeriodRecomputer,
    half_month_period,
    parse_shard,
    validate_period,
)
from jornadas.repositories.memory import (
    InMemoryEmployeeReader,
    InMemoryHolidayReader,
    InMemoryIdentityReader,
    InMemoryPlanReader,
    InMemoryPunchReader,
    InMemoryWorkDayStore,
)
from tests.conftest import _make_link, _make_plan, _make_punch, _make_shift_punches, local

DEC_1 = date(2025, 12, 1)
DEC_2 = date(2025, 12, 2)
AS_OF = date(2025, 12, 31)


def _recomputer(settings, *, punches=(), links=(), plans=(), holidays=(), store=None):
    identity = InMemoryIdentityReader(links)
    plan_reader = InMemoryPlanReader(plans)
    return PeriodRecomputer(
        punches=InMemoryPunchReader(punches, page_size=3),
        identity=identity,
        plans=plan_reader,
        holidays=InMemoryHolidayReader(holidays),
        employees=InMemoryEmployeeReader(identity, plan_reader),
        store=store or InMemoryWorkDayStore(),
        settings=settings,
    )


@pytest.fixture
def paged_settings(test_settings):
    return test_settings.model_copy(update={"EMPLOYEE_PAGE_SIZE": 2})


def _three_employees() -> dict:
    punches = []
    for employee_id in (1, 2, 3):
        punches += _make_shift_punches(
            local(2025, 12, 1, 8), local(2025, 12, 1, 16), identifier_id=f"CARD-{employee_id}"
        )
    return dict(
        punches=punches,
        links=[_make_link(e, f"CARD-{e}") for e in (1, 2, 3)],
        plans=[_make_plan(DEC_1, employee_id=e) for e in (1, 2, 3)],
    )


# ═════════════════════════════════════════════════════════════════════
# PAGING
# ═════════════════════════════════════════════════════════════════════


class TestRegeneratePeriod:

    async def test_pages_are_committed_one_by_one(self, paged_settings):
        store = InMemoryWorkDayStore()
        recomputer = _recomputer(paged_settings, store=store, **_three_employees())

        report = await recomputer.regenerate_period(DEC_1, DEC_2, as_of=AS_OF)

        assert report.completed is True
        assert report.pages == 2
        assert store.commits == 2
        assert report.employees_processed == 3
        assert report.next_cursor == 3
        assert sorted(store.work_days) == [(1, DEC_1), (2, DEC_1), (3, DEC_1)]
        assert store.compliance[(1, DEC_1)].status == ComplianceStatus.cumplido

    async def test_max_pages_and_resume(self, paged_settings):
        store = InMemoryWorkDayStore()
        recomputer = _recomputer(paged_settings, store=store, **_three_employees())

        first = await recomputer.regenerate_period(DEC_1, DEC_2, max_pages=1, as_of=AS_OF)
        assert first.completed is False
        assert first.next_cursor == 2
        assert sorted(store.work_days) == [(1, DEC_1), (2, DEC_1)]

        second = await recomputer.regenerate_period(
            DEC_1, DEC_2, start_after=first.next_cursor, as_of=AS_OF
        )
        assert second.completed is True
        assert second.employees_processed == 1
        assert sorted(store.work_days) == [(1, DEC_1), (2, DEC_1), (3, DEC_1)]

    async def test_shard_selects_its_employees(self, paged_settings):
        store = InMemoryWorkDayStore()
        recomputer = _recomputer(paged_settings, store=store, **_three_employees())

        report = await recomputer.regenerate_period(DEC_1, DEC_2, shard=(0, 2), as_of=AS_OF)

        assert report.completed is True
        assert sorted(store.work_days) == [(2, DEC_1)]

    async def test_explicit_employee_list(self, paged_settings):
        store = InMemoryWorkDayStore()
        recomputer = _recomputer(paged_settings, store=store, **_three_employees())

        report = await recomputer.regenerate_period(
            DEC_1, DEC_2, employee_ids=[3, 1], as_of=AS_OF
        )

        assert report.employees_processed == 2
        assert sorted(store.work_days) == [(1, DEC_1), (3, DEC_1)]

    async def test_dry_run_writes_nothing(self, paged_settings):
        store = InMemoryWorkDayStore()
        recomputer = _recomputer(paged_settings, store=store, **_three_employees())

        report = await recomputer.regenerate_period(DEC_1, DEC_2, dry_run=True, as_of=AS_OF)

        assert report.dry_run is True
        assert report.processed_keys == 3
        assert store.work_days == {}
        assert store.commits == 0

    async def test_rerun_is_idempotent(self, paged_settings):
        store = InMemoryWorkDayStore()
        recomputer = _recomputer(paged_settings, store=store, **_three_employees())

        await recomputer.regenerate_period(DEC_1, DEC_2, as_of=AS_OF)
        snapshot = (dict(store.work_days), dict(store.compliance))
        await recomputer.regenerate_period(DEC_1, DEC_2, as_of=AS_OF)

        assert (store.work_days, store.compliance) == snapshot

    async def test_process_day(self, test_settings):
        store = InMemoryWorkDayStore()
        recomputer = _recomputer(test_settings, store=store, **_three_employees())

        report = await recomputer.process_day(DEC_1, as_of=AS_OF)

        assert report.date_from == report.date_to == DEC_1
        assert len(store.work_days) == 3

    async def test_store_failure_rolls_back(self, test_settings):
        class FailingStore(InMemoryWorkDayStore):
            rollbacks = 0

            async def replace_period(self, *args, **kwargs):
                raise RuntimeError("disk full")

            async def rollback(self):
                self.rollbacks += 1
                await super().rollback()

        store = FailingStore()
        recomputer = _recomputer(test_settings, store=store, **_three_employees())

        with pytest.raises(ProcessingError):
            await recomputer.regenerate_period(DEC_1, DEC_2, as_of=AS_OF)
        assert store.rollbacks == 1
        assert store.commits == 0

    async def test_period_too_long_is_rejected(self, test_settings):
        recomputer = _recomputer(test_settings)
        with pytest.raises(ValidationException):
            await recomputer.regenerate_period(date(2025, 1, 1), date(2025, 12, 31))


# ═════════════════════════════════════════════════════════════════════
# FLAG LIFECYCLE
# ═════════════════════════════════════════════════════════════════════


class TestFlagLifecycle:

    async def test_resolved_flag_survives_rerun(self, test_settings):
        store = InMemoryWorkDayStore()
        recomputer = _recomputer(
            test_settings,
            store=store,
            links=[_make_link(1, "CARD-1")],
            plans=[_make_plan(DEC_2)],
        )
        await recomputer.regenerate_period(DEC_1, DEC_2, as_of=AS_OF)

        key = (1, DEC_2, InconsistencyType.no_punches.value)
        stored = store.flags[key]
        await store.resolve_flag(stored.id, "supervisor", "Day off agreed verbally")

        await recomputer.regenerate_period(DEC_1, DEC_2, as_of=AS_OF)
        assert store.flags[key].is_resolved is True
        assert store.flags[key].id == stored.id
        assert store.flags[key].resolved_by == "supervisor"

    async def test_stale_open_flag_is_removed(self, test_settings):
        store = InMemoryWorkDayStore()
        punches = [_make_punch(local(2025, 12, 2, 8))]
        recomputer = _recomputer(
            test_settings,
            store=store,
            punches=punches,
            links=[_make_link(1, "CARD-1")],
        )
        await recomputer.regenerate_period(DEC_1, DEC_2, as_of=AS_OF)
        assert (1, DEC_2, InconsistencyType.missing_exit.value) in store.flags

        # The late exit arrives; the next run no longer produces the flag
        punches.append(_make_punch(local(2025, 12, 2, 16), PunchType.exit))
        recomputer.punches = InMemoryPunchReader(punches)
        await recomputer.regenerate_period(DEC_1, DEC_2, as_of=AS_OF)

        assert store.flags == {}
        assert store.work_days[(1, DEC_2)].session.is_complete


# ═════════════════════════════════════════════════════════════════════
# PERIOD HELPERS
# ═════════════════════════════════════════════════════════════════════


class TestPeriodHelpers:

    def test_half_month(self):
        assert half_month_period(2025, 12, 1) == (date(2025, 12, 1), date(2025, 12, 15))
        assert half_month_period(2025, 2, 2) == (date(2025, 2, 16), date(2025, 2, 28))
        assert half_month_period(2024, 2, 2) == (date(2024, 2, 16), date(2024, 2, 29))

    def test_half_month_rejects_bad_half(self):
        with pytest.raises(ValidationException):
            half_month_period(2025, 12, 3)

    def test_validate_period(self):
        validate_period(DEC_1, DEC_1, 1)
        with pytest.raises(ValidationException):
            validate_period(DEC_2, DEC_1, 62)
        with pytest.raises(ValidationException):
            validate_period(DEC_1, date(2025, 12, 3), 2)

    def test_parse_shard(self):
        assert parse_shard("1/4") == (1, 4)
        for bad in ("4/4", "x/2", "1", "1/0"):
            with pytest.raises(ValidationException):
                parse_shard(bad)

    async def test_regenerate_half_month(self, test_settings):
        store = InMemoryWorkDayStore()
        recomputer = _recomputer(test_settings, store=store, **_three_employees())

        report = await recomputer.regenerate_half_month(2025, 12, 1, as_of=AS_OF)

        assert (report.date_from, report.date_to) == (DEC_1, date(2025, 12, 15))
        assert len(store.work_days) == 3
