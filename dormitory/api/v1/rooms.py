"""Rooms API router — read-only view of a room and the status of its beds."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dormitory.api.deps import Principal, get_current_principal, get_db
from dormitory.booking import catalog
from dormitory.schemas.catalog import RoomDetailResponse

router = APIRouter(prefix="/api/v1/rooms", tags=["rooms"])


@router.get(
    "/{room_id}",
    response_model=RoomDetailResponse,
    summary="Get a room with its beds",
)
async def get_room(
    room_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(get_current_principal),
) -> dict:
    room, beds = await catalog.get_room_with_beds(db, room_id)
    return {
        "id": room.id,
        "building_id": room.building_id,
        "label": room.label,
        "room_type": room.room_type,
        "capacity": room.capacity,
        "current_occupancy": room.current_occupancy,
        "beds": beds,
    }
