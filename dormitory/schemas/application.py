"""Pydantic v2 request/response schemas for application and occupancy endpoints."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from dormitory.models.enums import ApplicationStatus

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ApplicationCreate(BaseModel):
    """A student's request to reserve a specific bed."""

    bed_id: uuid.UUID


class RejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class DirectCheckInRequest(BaseModel):
    """Staff-initiated assignment of a student to an available bed."""

    student_id: str = Field(..., min_length=1, max_length=32)
    bed_id: uuid.UUID


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ApplicationResponse(BaseModel):
    id: uuid.UUID
    student_id: str
    bed_id: uuid.UUID
    status: ApplicationStatus
    created_at: datetime
    decided_at: datetime | None = None
    decided_by: str | None = None
    rejection_reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    items: list[ApplicationResponse]
    total: int


class PendingCountResponse(BaseModel):
    count: int


class CheckInResponse(BaseModel):
    """Returned by approve and direct check-in; mirrors ``CheckInConfirmation``."""

    student_id: str
    student_name: str
    building_name: str
    room_label: str
    bed_label: str
    bed_id: uuid.UUID
    room_id: uuid.UUID
    occupancy_record_id: uuid.UUID
    start_date: date
    application_id: uuid.UUID | None = None
    notification_status: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CheckOutResponse(BaseModel):
    student_id: str
    student_name: str | None = None
    building_name: str
    room_label: str
    bed_label: str
    bed_id: uuid.UUID
    room_id: uuid.UUID
    occupancy_record_id: uuid.UUID
    start_date: date
    end_date: date
    notification_status: str | None = None

    model_config = ConfigDict(from_attributes=True)
