"""Pydantic v2 response schemas for the room/bed catalog and maintenance endpoints."""

import uuid

from pydantic import BaseModel, ConfigDict

from dormitory.models.enums import BedStatus


class BedResponse(BaseModel):
    id: uuid.UUID
    room_id: uuid.UUID
    label: str
    status: BedStatus
    version: int

    model_config = ConfigDict(from_attributes=True)


class RoomDetailResponse(BaseModel):
    """A room with its beds, for picking a bed to apply for."""

    id: uuid.UUID
    building_id: uuid.UUID
    label: str
    room_type: str | None = None
    capacity: int
    current_occupancy: int
    beds: list[BedResponse]


class OccupancyCorrectionResponse(BaseModel):
    room_id: uuid.UUID
    room_label: str
    previous: int
    actual: int

    model_config = ConfigDict(from_attributes=True)


class ReconciliationResponse(BaseModel):
    rooms_checked: int
    corrections: list[OccupancyCorrectionResponse]

    model_config = ConfigDict(from_attributes=True)
