"""Status enums shared by the booking models."""

import enum

from sqlalchemy import Enum as SqlEnum


class BedStatus(str, enum.Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OccupancyStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"


def status_column_type(enum_cls: type[enum.Enum]) -> SqlEnum:
    """Store an enum as its lowercase value in a short VARCHAR (no native DB enum)."""
    return SqlEnum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
