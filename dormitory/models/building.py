"""Building model — top of the Building → Room → Bed catalog."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from dormitory.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Building(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A dormitory building. Owned by the external building/room CRUD."""

    __tablename__ = "buildings"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), default=None)
    manager_name: Mapped[str | None] = mapped_column(String(100), default=None)
    manager_phone: Mapped[str | None] = mapped_column(String(50), default=None)

    def __repr__(self) -> str:
        return f"<Building(id={self.id}, name={self.name!r})>"
