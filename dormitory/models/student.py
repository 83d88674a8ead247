"""Student model — the requester of a bed."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from dormitory.database import Base, TimestampMixin


class Student(TimestampMixin, Base):
    """A student, keyed by institutional student number.

    Profile fields belong to the external student CRUD; the booking engine only
    writes the location fields on check-in and clears them on check-out.
    """

    __tablename__ = "students"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    gender: Mapped[str | None] = mapped_column(String(20), default=None)
    major: Mapped[str | None] = mapped_column(String(100), default=None)

    # Location, denormalized from the active occupancy record
    building_name: Mapped[str | None] = mapped_column(String(100), default=None)
    room_label: Mapped[str | None] = mapped_column(String(50), default=None)
    bed_label: Mapped[str | None] = mapped_column(String(20), default=None)

    def __repr__(self) -> str:
        return f"<Student(id={self.id!r}, name={self.name!r})>"
