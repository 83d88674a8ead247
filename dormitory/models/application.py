"""Application model — a student's request for one specific bed."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from dormitory.database import Base, UUIDPrimaryKeyMixin, utcnow
from dormitory.models.enums import ApplicationStatus, status_column_type


class Application(UUIDPrimaryKeyMixin, Base):
    """A bed application.

    Created ``pending`` by a reservation and closed exactly once, either
    ``approved`` or ``rejected``. Closed applications are never re-opened.
    """

    __tablename__ = "applications"

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
    status: Mapped[ApplicationStatus] = mapped_column(
        status_column_type(ApplicationStatus),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    decided_by: Mapped[str | None] = mapped_column(String(64), default=None)
    rejection_reason: Mapped[str | None] = mapped_column(String(500), default=None)

    __table_args__ = (
        # At most one pending application per student
        Index(
            "uq_applications_pending_student",
            "student_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == ApplicationStatus.PENDING

    def __repr__(self) -> str:
        return (
            f"<Application(id={self.id}, student_id={self.student_id!r}, bed_id={self.bed_id}, "
            f"status={self.status.value})>"
        )
