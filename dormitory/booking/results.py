"""Values returned by successful booking engine operations."""

import uuid
from dataclasses import dataclass, field
from datetime import date

from dormitory.booking.catalog import BedLocation, OccupancyCorrection


@dataclass(frozen=True)
class CheckInConfirmation:
    """A student now occupies a bed. Carries the labels notifications need."""

    student_id: str
    student_name: str
    student_email: str | None
    building_name: str
    room_label: str
    bed_label: str
    bed_id: uuid.UUID
    room_id: uuid.UUID
    occupancy_record_id: uuid.UUID
    start_date: date
    application_id: uuid.UUID | None = None

    @classmethod
    def build(cls, student, location: BedLocation, record, application_id: uuid.UUID | None = None):
        return cls(
            student_id=student.id,
            student_name=student.name,
            student_email=student.email,
            building_name=location.building_name,
            room_label=location.room_label,
            bed_label=location.bed_label,
            bed_id=location.bed_id,
            room_id=location.room_id,
            occupancy_record_id=record.id,
            start_date=record.start_date,
            application_id=application_id,
        )


@dataclass(frozen=True)
class CheckOutConfirmation:
    student_id: str
    student_name: str | None
    student_email: str | None
    building_name: str
    room_label: str
    bed_label: str
    bed_id: uuid.UUID
    room_id: uuid.UUID
    occupancy_record_id: uuid.UUID
    start_date: date
    end_date: date


@dataclass(frozen=True)
class ReconciliationReport:
    rooms_checked: int
    corrections: list[OccupancyCorrection] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.corrections)
