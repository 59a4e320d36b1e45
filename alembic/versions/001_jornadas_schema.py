"""001 – Jornadas schema: punches, identifiers, calendar, planning, derived tables.

Revision ID: 001_jornadas_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000-03:00
"""

from alembic import op

# Revision identifiers
revision = "001_jornadas_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Enums are stored as VARCHAR + CHECK so new values need no type migration
CHECKED_VALUES: dict[str, list[str]] = {
    "punch_type": ["E", "S"],
    "plan_status": ["WORKING", "ABSENT", "REST"],
    "compliance_status": [
        "cumplido",
        "no_determinar",
        "sin_planificacion",
        "franco",
        "ausente",
    ],
    "day_type": ["WEEKDAY", "SATURDAY", "SUNDAY", "HOLIDAY"],
    "inconsistency_type": [
        "missing-entry",
        "missing-exit",
        "invalid-session",
        "no-punches",
        "duplicate-session",
        "identity-conflict",
    ],
}


def _check(column: str, enum_name: str) -> str:
    vals = ", ".join(f"'{v}'" for v in CHECKED_VALUES[enum_name])
    return f"CONSTRAINT ck_{enum_name}_{column} CHECK ({column} IN ({vals}))"


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. marcaciones ────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE marcaciones (
            id            BIGSERIAL PRIMARY KEY,
            identifier_id VARCHAR(64) NOT NULL,
            event_type    VARCHAR(1)  NOT NULL,
            timestamp     TIMESTAMPTZ NOT NULL,
            device_id     VARCHAR(50),
            created_at    TIMESTAMPTZ DEFAULT NOW(),
            {_check("event_type", "punch_type")}
        )
    """)
    op.execute("CREATE INDEX ix_marcaciones_identifier_id ON marcaciones(identifier_id)")
    op.execute("CREATE INDEX ix_marcaciones_timestamp_id  ON marcaciones(timestamp, id)")

    # ── 2. employee_identifiers ───────────────────────────────────────────
    op.execute("""
        CREATE TABLE employee_identifiers (
            id            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id   INTEGER     NOT NULL,
            identifier_id VARCHAR(64) NOT NULL,
            is_active     BOOLEAN DEFAULT TRUE,
            created_at    TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_employee_identifier UNIQUE (employee_id, identifier_id)
        )
    """)
    op.execute(
        "CREATE INDEX ix_employee_identifiers_employee_id "
        "ON employee_identifiers(employee_id)"
    )
    op.execute(
        "CREATE INDEX ix_employee_identifiers_identifier_id "
        "ON employee_identifiers(identifier_id)"
    )

    # ── 3. holidays ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE holidays (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            date        DATE NOT NULL UNIQUE,
            name        VARCHAR(150),
            is_workable BOOLEAN DEFAULT FALSE,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 4. daily_planning ─────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE daily_planning (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id     INTEGER     NOT NULL,
            date            DATE        NOT NULL,
            status          VARCHAR(10) NOT NULL,
            absence_reason  VARCHAR(100),
            normal_entry_at TIMESTAMPTZ,
            normal_exit_at  TIMESTAMPTZ,
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_planning_emp_date UNIQUE (employee_id, date),
            {_check("status", "plan_status")}
        )
    """)
    op.execute(
        "CREATE INDEX ix_daily_planning_employee_id ON daily_planning(employee_id)"
    )

    # ── 5. work_days ──────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE work_days (
            id                            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id                   INTEGER     NOT NULL,
            work_date                     DATE        NOT NULL,
            day_type                      VARCHAR(10) NOT NULL,
            shift_letter                  VARCHAR(1),
            entry_at                      TIMESTAMPTZ NOT NULL,
            exit_at                       TIMESTAMPTZ,
            duration_hours                NUMERIC(5,2) NOT NULL DEFAULT 0,
            jornada_hours                 NUMERIC(5,2) NOT NULL DEFAULT 0,
            normal_hours                  NUMERIC(5,2) NOT NULL DEFAULT 0,
            extra_50_diurnal              NUMERIC(5,2) NOT NULL DEFAULT 0,
            extra_50_nocturnal            NUMERIC(5,2) NOT NULL DEFAULT 0,
            extra_100_diurnal             NUMERIC(5,2) NOT NULL DEFAULT 0,
            extra_100_nocturnal           NUMERIC(5,2) NOT NULL DEFAULT 0,
            normal_hours_displaced_to_100 NUMERIC(5,2) NOT NULL DEFAULT 0,
            created_at                    TIMESTAMPTZ DEFAULT NOW(),
            updated_at                    TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_work_day_emp_date UNIQUE (employee_id, work_date),
            {_check("day_type", "day_type")}
        )
    """)
    op.execute("CREATE INDEX ix_work_days_employee_id ON work_days(employee_id)")
    op.execute("CREATE INDEX ix_work_days_work_date   ON work_days(work_date)")

    # ── 6. attendance_compliance ──────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE attendance_compliance (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id         INTEGER     NOT NULL,
            date                DATE        NOT NULL,
            status              VARCHAR(20) NOT NULL,
            entry_ok            BOOLEAN,
            exit_ok             BOOLEAN,
            entry_delta_minutes INTEGER,
            exit_delta_minutes  INTEGER,
            notes               TEXT,
            manual_override     BOOLEAN DEFAULT FALSE,
            created_at          TIMESTAMPTZ DEFAULT NOW(),
            updated_at          TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_compliance_emp_date UNIQUE (employee_id, date),
            {_check("status", "compliance_status")}
        )
    """)
    op.execute(
        "CREATE INDEX ix_attendance_compliance_employee_id "
        "ON attendance_compliance(employee_id)"
    )
    op.execute(
        "CREATE INDEX ix_attendance_compliance_date ON attendance_compliance(date)"
    )

    # ── 7. inconsistency_flags ────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE inconsistency_flags (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id     INTEGER     NOT NULL,
            work_date       DATE        NOT NULL,
            flag_type       VARCHAR(20) NOT NULL,
            detail          TEXT,
            occurred_at     TIMESTAMPTZ,
            is_resolved     BOOLEAN DEFAULT FALSE,
            resolved_by     VARCHAR(100),
            resolved_at     TIMESTAMPTZ,
            resolution_note TEXT,
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            updated_at      TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_flag_emp_date_type UNIQUE (employee_id, work_date, flag_type),
            {_check("flag_type", "inconsistency_type")}
        )
    """)
    op.execute(
        "CREATE INDEX ix_inconsistency_flags_employee_id "
        "ON inconsistency_flags(employee_id)"
    )
    op.execute(
        "CREATE INDEX ix_inconsistency_flags_work_date ON inconsistency_flags(work_date)"
    )
    op.execute("""
        CREATE INDEX ix_inconsistency_flags_open
            ON inconsistency_flags(work_date, employee_id)
            WHERE is_resolved = FALSE
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    tables = [
        "inconsistency_flags",
        "attendance_compliance",
        "work_days",
        "daily_planning",
        "holidays",
        "employee_identifiers",
        "marcaciones",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
