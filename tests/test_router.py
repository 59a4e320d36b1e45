"""HTTP API test suite — recomputation triggers, list endpoints, flag
resolution and RFC 7807 error bodies.
"""

from __future__ import annotations

import uuid
from datetime import date

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jornadas.common.constants import PlanStatus, PunchType
from jornadas.compliance.models import DailyPlanning
from jornadas.identity.models import EmployeeIdentifier
from jornadas.processing.models import InconsistencyFlagRecord
from jornadas.repositories.sql import as_utc
from jornadas.sessions.models import Punch
from tests.conftest import local

BASE = "/api/v1/processing"
PERIOD = {"from_date": "2025-12-01", "to_date": "2025-12-02"}


async def _seed(db: AsyncSession) -> None:
    db.add(EmployeeIdentifier(employee_id=1, identifier_id="CARD-1"))
    db.add(Punch(identifier_id="CARD-1", event_type=PunchType.entry,
                 timestamp=as_utc(local(2025, 12, 1, 6))))
    db.add(Punch(identifier_id="CARD-1", event_type=PunchType.exit,
                 timestamp=as_utc(local(2025, 12, 1, 16, 10))))
    for day in (date(2025, 12, 1), date(2025, 12, 2)):
        db.add(DailyPlanning(
            employee_id=1,
            date=day,
            status=PlanStatus.working,
            normal_entry_at=as_utc(local(day.year, day.month, day.day, 8)),
            normal_exit_at=as_utc(local(day.year, day.month, day.day, 16)),
        ))
    await db.commit()


async def _regenerate(client: AsyncClient, **body):
    payload = {"date_from": "2025-12-01", "date_to": "2025-12-02", **body}
    return await client.post(f"{BASE}/regenerate", json=payload)


class TestHealth:

    async def test_health(self, client: AsyncClient):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["timezone"] == "America/Argentina/Buenos_Aires"


class TestRecomputeEndpoints:

    async def test_regenerate_returns_report(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)

        resp = await _regenerate(client)

        assert resp.status_code == 200
        report = resp.json()
        assert report["completed"] is True
        assert report["employees_processed"] == 1
        assert report["processed_keys"] == 2
        assert report["flags"] == 1
        assert report["errors"] == []

    async def test_dry_run_writes_nothing(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)

        resp = await _regenerate(client, dry_run=True)
        assert resp.json()["dry_run"] is True

        listed = await client.get(f"{BASE}/work-days", params=PERIOD)
        assert listed.json()["meta"]["total"] == 0

    async def test_day_endpoint(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)

        resp = await client.post(f"{BASE}/day", json={"date": "2025-12-01"})

        assert resp.status_code == 200
        assert resp.json()["date_from"] == resp.json()["date_to"] == "2025-12-01"

    async def test_half_month_endpoint(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)

        resp = await client.post(
            f"{BASE}/half-month", json={"year": 2025, "month": 12, "half": 1}
        )

        assert resp.status_code == 200
        assert resp.json()["date_to"] == "2025-12-15"

    async def test_inverted_period_is_problem_json(self, client: AsyncClient):
        resp = await client.post(
            f"{BASE}/regenerate", json={"date_from": "2025-12-02", "date_to": "2025-12-01"}
        )

        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["type"].endswith("/validation-error")
        assert "date_to" in body["errors"]

    async def test_bad_half_is_rejected(self, client: AsyncClient):
        resp = await client.post(
            f"{BASE}/half-month", json={"year": 2025, "month": 12, "half": 3}
        )
        assert resp.status_code == 422
        assert "half" in resp.json()["errors"]

    async def test_recompute_is_rate_limited(self, client: AsyncClient):
        statuses = [
            (await client.post(f"{BASE}/day", json={"date": "2025-12-01", "dry_run": True})).status_code
            for _ in range(7)
        ]
        assert statuses[:6] == [200] * 6
        assert statuses[6] == 429


class TestListEndpoints:

    async def test_work_days_and_compliance(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        await _regenerate(client)

        work_days = await client.get(f"{BASE}/work-days", params=PERIOD)
        assert work_days.status_code == 200
        data = work_days.json()["data"]
        assert len(data) == 1
        assert data[0]["normal_hours"] == 8.0
        assert data[0]["extra_50_diurnal"] == 2.0
        assert data[0]["shift_letter"] == "M"

        compliance = await client.get(
            f"{BASE}/compliance", params={**PERIOD, "employee_id": 1}
        )
        assert compliance.json()["meta"]["total"] == 2
        assert {c["status"] for c in compliance.json()["data"]} == {"no_determinar"}

    async def test_pagination_meta(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        await _regenerate(client)

        resp = await client.get(
            f"{BASE}/compliance", params={**PERIOD, "page": 1, "page_size": 1}
        )
        meta = resp.json()["meta"]
        assert meta["total"] == 2
        assert meta["total_pages"] == 2
        assert meta["has_next"] is True

    async def test_period_too_long(self, client: AsyncClient):
        resp = await client.get(
            f"{BASE}/work-days", params={"from_date": "2025-01-01", "to_date": "2025-12-31"}
        )
        assert resp.status_code == 422


class TestFlagResolution:

    async def test_resolve_flow(self, client: AsyncClient, db: AsyncSession):
        await _seed(db)
        await _regenerate(client)

        flags = await client.get(f"{BASE}/flags", params=PERIOD)
        assert flags.json()["meta"]["total"] == 1
        flag = flags.json()["data"][0]
        assert flag["flag_type"] == "no-punches"
        assert flag["work_date"] == "2025-12-02"

        resp = await client.post(
            f"{BASE}/flags/{flag['id']}/resolve",
            json={"resolved_by": "supervisor", "note": "Approved leave"},
        )
        assert resp.status_code == 200
        assert resp.json()["is_resolved"] is True
        assert resp.json()["resolution_note"] == "Approved leave"

        open_flags = await client.get(f"{BASE}/flags", params=PERIOD)
        assert open_flags.json()["meta"]["total"] == 0
        all_flags = await client.get(
            f"{BASE}/flags", params={**PERIOD, "include_resolved": True}
        )
        assert all_flags.json()["meta"]["total"] == 1

        # A second resolution is a conflict
        again = await client.post(
            f"{BASE}/flags/{flag['id']}/resolve", json={"resolved_by": "supervisor"}
        )
        assert again.status_code == 409
        assert again.headers["content-type"].startswith("application/problem+json")

        # Re-running keeps the flag resolved
        await _regenerate(client)
        stored = (await db.execute(select(InconsistencyFlagRecord))).scalars().all()
        assert len(stored) == 1

        after_rerun = await client.get(f"{BASE}/flags", params=PERIOD)
        assert after_rerun.json()["meta"]["total"] == 0

    async def test_resolve_unknown_flag(self, client: AsyncClient):
        resp = await client.post(
            f"{BASE}/flags/{uuid.uuid4()}/resolve", json={"resolved_by": "supervisor"}
        )
        assert resp.status_code == 404
        assert resp.json()["type"].endswith("/not-found")
