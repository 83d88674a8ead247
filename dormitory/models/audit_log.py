"""Audit log model — append-only record of engine actions."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dormitory.database import Base, UUIDPrimaryKeyMixin, utcnow


class AuditLog(UUIDPrimaryKeyMixin, Base):
    """One audit event: who did what to which entity."""

    __tablename__ = "audit_logs"

    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # RESERVE_BED, CHECK_OUT, ...
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)  # APPLICATION, BED, STUDENT, ROOM
    entity_id: Mapped[str | None] = mapped_column(String(64), default=None, index=True)
    actor: Mapped[str] = mapped_column(String(64), nullable=False)
    detail: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<AuditLog(action={self.action!r}, entity={self.entity_type}:{self.entity_id}, actor={self.actor!r})>"
