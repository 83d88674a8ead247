"""create_booking_tables

Revision ID: 3f9c1d2e7a10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1d2e7a10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "buildings",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("manager_name", sa.String(100), nullable=True),
        sa.Column("manager_phone", sa.String(50), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("building_id", sa.UUID(), sa.ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("label", sa.String(50), nullable=False),
        sa.Column("room_type", sa.String(50), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_occupancy", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("building_id", "label", name="uq_rooms_building_label"),
        sa.CheckConstraint("capacity >= 0", name="ck_rooms_capacity_non_negative"),
        sa.CheckConstraint("current_occupancy >= 0", name="ck_rooms_occupancy_non_negative"),
    )
    op.create_index("ix_rooms_building_id", "rooms", ["building_id"])

    op.create_table(
        "beds",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("room_id", sa.UUID(), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("label", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.UniqueConstraint("room_id", "label", name="uq_beds_room_label"),
    )
    op.create_index("ix_beds_room_id", "beds", ["room_id"])
    op.create_index("ix_beds_status", "beds", ["status"])

    op.create_table(
        "students",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("major", sa.String(100), nullable=True),
        sa.Column("building_name", sa.String(100), nullable=True),
        sa.Column("room_label", sa.String(50), nullable=True),
        sa.Column("bed_label", sa.String(20), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("student_id", sa.String(32), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("bed_id", sa.UUID(), sa.ForeignKey("beds.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_by", sa.String(64), nullable=True),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
    )
    op.create_index("ix_applications_student_id", "applications", ["student_id"])
    op.create_index("ix_applications_bed_id", "applications", ["bed_id"])
    op.create_index("ix_applications_status", "applications", ["status"])
    # At most one pending application per student
    op.create_index(
        "uq_applications_pending_student",
        "applications",
        ["student_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "occupancy_records",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("student_id", sa.String(32), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("bed_id", sa.UUID(), sa.ForeignKey("beds.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_occupancy_records_student_id", "occupancy_records", ["student_id"])
    op.create_index("ix_occupancy_records_bed_id", "occupancy_records", ["bed_id"])
    op.create_index("ix_occupancy_records_status", "occupancy_records", ["status"])
    # At most one active stay per student and per bed
    op.create_index(
        "uq_occupancy_active_student",
        "occupancy_records",
        ["student_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )
    op.create_index(
        "uq_occupancy_active_bed",
        "occupancy_records",
        ["bed_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=True),
        sa.Column("actor", sa.String(64), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("occupancy_records")
    op.drop_table("applications")
    op.drop_table("students")
    op.drop_table("beds")
    op.drop_table("rooms")
    op.drop_table("buildings")
