"""Room model — capacity plus the denormalized occupancy counter."""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dormitory.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Room(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A room inside a building.

    ``current_occupancy`` caches the number of beds in this room whose status
    is ``occupied``. Only the booking engine's catalog helpers write it, and
    reconciliation can always recompute it from the bed rows.
    """

    __tablename__ = "rooms"

    building_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("buildings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g. "101"
    room_type: Mapped[str | None] = mapped_column(String(50), default=None)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    building: Mapped["Building"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        UniqueConstraint("building_id", "label", name="uq_rooms_building_label"),
        CheckConstraint("capacity >= 0", name="ck_rooms_capacity_non_negative"),
        CheckConstraint("current_occupancy >= 0", name="ck_rooms_occupancy_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Room(id={self.id}, label={self.label!r}, capacity={self.capacity}, "
            f"current_occupancy={self.current_occupancy})>"
        )
