"""Employee ↔ device identifier ORM model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from jornadas.database import Base


class EmployeeIdentifier(Base):
    __tablename__ = "employee_identifiers"
    __table_args__ = (
        sa.UniqueConstraint(
            "employee_id", "identifier_id", name="uq_employee_identifier"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[int] = mapped_column(sa.Integer, nullable=False, index=True)
    identifier_id: Mapped[str] = mapped_column(
        sa.String(64), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
