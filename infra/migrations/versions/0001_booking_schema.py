"""booking schema: availability rules, services, appointments, audit logs

Revision ID: 0001_booking_schema
Revises:
Create Date: 2026-10-17 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_booking_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return (
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )


def upgrade() -> None:
    op.create_table(
        "availability_rules",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("doctor_id", sa.Uuid(), nullable=False),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("start_time < end_time", name="ck_rule_time_order"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_rule_day_of_week"),
    )
    op.create_index("ix_rule_doctor_day", "availability_rules", ["doctor_id", "day_of_week"])

    op.create_table(
        "services",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("doctor_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_service_price_positive"),
        sa.CheckConstraint("duration > 0", name="ck_service_duration_positive"),
    )
    op.create_index("ix_services_doctor_id", "services", ["doctor_id"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("doctor_id", sa.Uuid(), nullable=False),
        sa.Column("patient_id", sa.Uuid(), nullable=False),
        sa.Column(
            "service_id",
            sa.Uuid(),
            sa.ForeignKey("services.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.Time(), nullable=False),
        sa.Column("status", sa.String(20), server_default="scheduled", nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_for_self", sa.Boolean(), nullable=False),
        sa.Column("beneficiary_name", sa.String(120), nullable=True),
        sa.Column("beneficiary_phone", sa.String(32), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled')",
            name="ck_appt_status_valid",
        ),
        sa.CheckConstraint(
            "is_for_self OR (beneficiary_name IS NOT NULL AND beneficiary_phone IS NOT NULL)",
            name="ck_appt_beneficiary_complete",
        ),
    )
    # Slot uniqueness and one-active-per-pair, scheduled rows only
    op.create_index(
        "uq_appt_scheduled_slot",
        "appointments",
        ["doctor_id", "appointment_date", "appointment_time"],
        unique=True,
        postgresql_where=sa.text("status = 'scheduled'"),
    )
    op.create_index(
        "uq_appt_scheduled_doctor_patient",
        "appointments",
        ["doctor_id", "patient_id"],
        unique=True,
        postgresql_where=sa.text("status = 'scheduled'"),
    )
    op.create_index(
        "ix_appt_doctor_date_time",
        "appointments",
        ["doctor_id", "appointment_date", "appointment_time"],
    )
    op.create_index("ix_appt_patient_date", "appointments", ["patient_id", "appointment_date"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("action", sa.String(120), nullable=False),
        sa.Column("details", sa.String(), nullable=True),
        sa.Column("timestamp", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_index("ix_appt_patient_date", table_name="appointments")
    op.drop_index("ix_appt_doctor_date_time", table_name="appointments")
    op.drop_index("uq_appt_scheduled_doctor_patient", table_name="appointments")
    op.drop_index("uq_appt_scheduled_slot", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_services_doctor_id", table_name="services")
    op.drop_table("services")
    op.drop_index("ix_rule_doctor_day", table_name="availability_rules")
    op.drop_table("availability_rules")
