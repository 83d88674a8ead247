"""Bed model — the unit of allocatable capacity."""

import uuid

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dormitory.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from dormitory.models.enums import BedStatus, status_column_type


class Bed(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A single bed in a room.

    ``status`` is written only by the booking engine. ``version`` is the ORM
    version counter: every ORM flush of a bed is conditional on the version it
    was loaded with, and conditional updates issued by the bed state store
    bump it explicitly.
    """

    __tablename__ = "beds"

    room_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(20), nullable=False)  # e.g. "3"
    status: Mapped[BedStatus] = mapped_column(
        status_column_type(BedStatus),
        nullable=False,
        default=BedStatus.AVAILABLE,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    room: Mapped["Room"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (UniqueConstraint("room_id", "label", name="uq_beds_room_label"),)
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Bed(id={self.id}, label={self.label!r}, status={self.status.value}, version={self.version})>"
