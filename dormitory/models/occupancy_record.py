"""Occupancy record model — one row per stay in a bed."""

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from dormitory.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from dormitory.models.enums import OccupancyStatus, status_column_type


class OccupancyRecord(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A check-in/check-out log entry.

    ``active`` while the student lives in the bed, ``closed`` (with an end
    date) after check-out.
    """

    __tablename__ = "occupancy_records"

    student_id: Mapped[str] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bed_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("beds.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, default=None)
    status: Mapped[OccupancyStatus] = mapped_column(
        status_column_type(OccupancyStatus),
        nullable=False,
        default=OccupancyStatus.ACTIVE,
        index=True,
    )

    __table_args__ = (
        # At most one active record per student and per bed
        Index(
            "uq_occupancy_active_student",
            "student_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index(
            "uq_occupancy_active_bed",
            "bed_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<OccupancyRecord(id={self.id}, student_id={self.student_id!r}, bed_id={self.bed_id}, "
            f"status={self.status.value})>"
        )
