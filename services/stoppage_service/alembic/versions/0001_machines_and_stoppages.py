"""machines and stoppage events

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = "downtime"

MACHINE_STATUS = ("RUNNING", "STOPPED", "MAINTENANCE")
STOPPAGE_TYPE = ("OPERATIONAL", "NON_OPERATIONAL")
STOPPAGE_CATEGORY = (
    "CORRECTIVE_MAINTENANCE",
    "PREVENTIVE_MAINTENANCE",
    "TOOL_SETUP_CHANGE",
    "MATERIAL_SHORTAGE",
    "QUALITY_INSPECTION",
    "PROCESS_ADJUSTMENT",
    "REPLENISHMENT",
    "CLEANING",
    "LUNCH",
    "RESTROOM",
    "MEETING",
    "TRAINING",
    "DAILY_SAFETY_TALK",
    "OTHER_NON_OPERATIONAL",
)


def upgrade() -> None:
    op.create_table(
        "machines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*MACHINE_STATUS, name="machine_status", schema=SCHEMA),
            nullable=False,
        ),
        sa.Column("section_id", sa.Integer(), nullable=True),
        sa.UniqueConstraint("tenant_id", "code", name="uq_machine_tenant_code"),
        schema=SCHEMA,
    )
    op.create_index("ix_downtime_machines_id", "machines", ["id"], schema=SCHEMA)
    op.create_index("ix_downtime_machines_tenant_id", "machines", ["tenant_id"], schema=SCHEMA)

    op.create_table(
        "stoppage_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column(
            "machine_id",
            sa.Integer(),
            sa.ForeignKey(f"{SCHEMA}.machines.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("reason", sa.String(255), nullable=False),
        sa.Column("team", sa.String(255), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("intervention_minutes", sa.Integer(), nullable=True),
        sa.Column(
            "type",
            sa.Enum(*STOPPAGE_TYPE, name="stoppage_type", schema=SCHEMA),
            nullable=False,
        ),
        sa.Column(
            "category",
            sa.Enum(*STOPPAGE_CATEGORY, name="stoppage_category", schema=SCHEMA),
            nullable=False,
        ),
        sa.Column("override_open", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        schema=SCHEMA,
    )
    op.create_index("ix_downtime_stoppage_events_id", "stoppage_events", ["id"], schema=SCHEMA)
    op.create_index("ix_downtime_stoppage_events_tenant_id", "stoppage_events", ["tenant_id"], schema=SCHEMA)
    op.create_index("ix_downtime_stoppage_events_machine_id", "stoppage_events", ["machine_id"], schema=SCHEMA)
    op.create_index("ix_downtime_stoppage_events_start_time", "stoppage_events", ["start_time"], schema=SCHEMA)

    # Не более одного открытого простоя без override на станок
    op.create_index(
        "uq_stoppage_single_open",
        "stoppage_events",
        ["machine_id"],
        unique=True,
        schema=SCHEMA,
        postgresql_where=sa.text("end_time IS NULL AND override_open = false"),
    )


def downgrade() -> None:
    op.drop_index("uq_stoppage_single_open", table_name="stoppage_events", schema=SCHEMA)
    op.drop_table("stoppage_events", schema=SCHEMA)
    op.drop_table("machines", schema=SCHEMA)
    sa.Enum(name="stoppage_category", schema=SCHEMA).drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="stoppage_type", schema=SCHEMA).drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="machine_status", schema=SCHEMA).drop(op.get_bind(), checkfirst=True)
