"""Shared test fixtures — async DB, client, factories.

Reusable across all test modules (pairing, overtime, compliance, processing).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Pin the civil zone before pydantic-settings reads the environment
os.environ.setdefault("TIMEZONE", "America/Argentina/Buenos_Aires")

import uuid
from datetime import date, datetime, timezone
from typing import AsyncGenerator, Optional
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from jornadas.common.constants import PlanStatus, PunchType
from jornadas.compliance.schemas import PlannedShift
from jornadas.calendar.schemas import HolidayEntry
from jornadas.config import settings
from jornadas.database import Base, get_db
from jornadas.identity.schemas import IdentifierLink
from jornadas.main import create_app
from jornadas.sessions.schemas import RawPunch, WorkSession

# Import ALL model modules so every table is registered on Base.metadata
import jornadas.sessions.models  # noqa: F401
import jornadas.identity.models  # noqa: F401
import jornadas.calendar.models  # noqa: F401
import jornadas.compliance.models  # noqa: F401
import jornadas.processing.models  # noqa: F401

# ── SQLite compat: compile PG-specific types ────────────────────────

from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and uuid_generate_v4() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "uuid_generate_v4", 0, lambda: str(uuid.uuid4()),
    )

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)

TZ = ZoneInfo("America/Argentina/Buenos_Aires")


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from jornadas.common.rate_limit import limiter
    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


@pytest.fixture
def test_settings():
    """Settings copy with the test zone; tweak fields per test with model_copy."""
    return settings.model_copy(update={"TIMEZONE": "America/Argentina/Buenos_Aires"})


# ── Factories ───────────────────────────────────────────────────────

def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Wall-clock instant in the test zone."""
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


def _make_punch(
    at: datetime,
    event_type: PunchType = PunchType.entry,
    *,
    identifier_id: str = "CARD-1",
) -> RawPunch:
    return RawPunch(identifier_id=identifier_id, event_type=event_type, timestamp=at)


def _make_shift_punches(
    entry_at: datetime,
    exit_at: Optional[datetime],
    *,
    identifier_id: str = "CARD-1",
) -> list[RawPunch]:
    punches = [_make_punch(entry_at, PunchType.entry, identifier_id=identifier_id)]
    if exit_at is not None:
        punches.append(_make_punch(exit_at, PunchType.exit, identifier_id=identifier_id))
    return punches


def _make_link(employee_id: int = 1, identifier_id: str = "CARD-1") -> IdentifierLink:
    return IdentifierLink(employee_id=employee_id, identifier_id=identifier_id)


def _make_plan(
    day: date,
    *,
    employee_id: int = 1,
    status: PlanStatus = PlanStatus.working,
    entry_hour: Optional[int] = 8,
    exit_hour: Optional[int] = 16,
    absence_reason: Optional[str] = None,
) -> PlannedShift:
    return PlannedShift(
        employee_id=employee_id,
        date=day,
        status=status,
        absence_reason=absence_reason,
        planned_entry=(
            local(day.year, day.month, day.day, entry_hour) if entry_hour is not None else None
        ),
        planned_exit=(
            local(day.year, day.month, day.day, exit_hour) if exit_hour is not None else None
        ),
    )


def _make_holiday(day: date, *, name: str = "Feriado", is_workable: bool = False) -> HolidayEntry:
    return HolidayEntry(date=day, name=name, is_workable=is_workable)


def _make_session(
    entry_at: datetime,
    exit_at: Optional[datetime],
    *,
    employee_id: int = 1,
    duration_hours: Optional[float] = None,
) -> WorkSession:
    if duration_hours is None:
        duration_hours = (
            round((exit_at - entry_at).total_seconds() / 3600, 2) if exit_at else 8.0
        )
    return WorkSession(
        employee_id=employee_id,
        work_date=entry_at.astimezone(TZ).date(),
        entry_at=entry_at,
        exit_at=exit_at,
        duration_hours=duration_hours,
    )
