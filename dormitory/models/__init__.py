"""SQLAlchemy models for the dormitory bed booking service.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from dormitory.models.application import Application
from dormitory.models.audit_log import AuditLog
from dormitory.models.bed import Bed
from dormitory.models.building import Building
from dormitory.models.enums import ApplicationStatus, BedStatus, OccupancyStatus
from dormitory.models.occupancy_record import OccupancyRecord
from dormitory.models.room import Room
from dormitory.models.student import Student

__all__ = [
    "Application",
    "ApplicationStatus",
    "AuditLog",
    "Bed",
    "BedStatus",
    "Building",
    "OccupancyRecord",
    "OccupancyStatus",
    "Room",
    "Student",
]
