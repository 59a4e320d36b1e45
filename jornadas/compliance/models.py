"""Planning and compliance ORM models: DailyPlanning, ComplianceRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from jornadas.common.constants import ComplianceStatus, PlanStatus
from jornadas.common.models import enum_type
from jornadas.database import Base


class DailyPlanning(Base):
    """Per-day plan, owned by the planning module."""

    __tablename__ = "daily_planning"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_planning_emp_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[int] = mapped_column(sa.Integer, nullable=False, index=True)
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    status: Mapped[PlanStatus] = mapped_column(
        enum_type(PlanStatus, "plan_status", 10), nullable=False
    )
    absence_reason: Mapped[Optional[str]] = mapped_column(sa.String(100))
    normal_entry_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    normal_exit_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )


class ComplianceRecord(Base):
    __tablename__ = "attendance_compliance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_compliance_emp_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[int] = mapped_column(sa.Integer, nullable=False, index=True)
    date: Mapped[date] = mapped_column(sa.Date, nullable=False, index=True)
    status: Mapped[ComplianceStatus] = mapped_column(
        enum_type(ComplianceStatus, "compliance_status", 20), nullable=False
    )
    entry_ok: Mapped[Optional[bool]] = mapped_column(sa.Boolean)
    exit_ok: Mapped[Optional[bool]] = mapped_column(sa.Boolean)
    entry_delta_minutes: Mapped[Optional[int]] = mapped_column(sa.Integer)
    exit_delta_minutes: Mapped[Optional[int]] = mapped_column(sa.Integer)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    # Rows edited by a supervisor are never overwritten by a re-run
    manual_override: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
