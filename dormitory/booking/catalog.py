"""Resource catalog — Building → Room → Bed lookups and the room occupancy counter."""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dormitory.booking.errors import RoomNotFound
from dormitory.models.bed import Bed
from dormitory.models.building import Building
from dormitory.models.enums import BedStatus
from dormitory.models.room import Room

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BedLocation:
    """Human-facing labels for a bed, used in confirmations and notifications."""

    building_id: uuid.UUID
    building_name: str
    room_id: uuid.UUID
    room_label: str
    bed_id: uuid.UUID
    bed_label: str


@dataclass(frozen=True)
class OccupancyCorrection:
    room_id: uuid.UUID
    room_label: str
    previous: int
    actual: int


async def locate_bed(session: AsyncSession, bed: Bed) -> BedLocation:
    """Resolve the building and room labels of ``bed``."""
    result = await session.execute(
        select(Room.id, Room.label, Building.id, Building.name)
        .join(Building, Room.building_id == Building.id)
        .where(Room.id == bed.room_id)
    )
    room_id, room_label, building_id, building_name = result.one()
    return BedLocation(
        building_id=building_id,
        building_name=building_name,
        room_id=room_id,
        room_label=room_label,
        bed_id=bed.id,
        bed_label=bed.label,
    )


async def adjust_occupancy(session: AsyncSession, room_id: uuid.UUID, delta: int) -> None:
    """Atomically add ``delta`` to a room's counter, never going below zero.

    A single UPDATE expression, so concurrent adjustments on the same room
    from transactions holding different bed locks cannot lose increments.
    """
    adjusted = Room.current_occupancy + delta
    if delta < 0:
        adjusted = case((adjusted < 0, 0), else_=adjusted)
    await session.execute(
        update(Room)
        .where(Room.id == room_id)
        .values(current_occupancy=adjusted)
        .execution_options(synchronize_session=False)
    )


async def count_occupied_beds(session: AsyncSession, room_id: uuid.UUID | None = None) -> dict[uuid.UUID, int]:
    """Occupied bed count per room, straight from the bed rows."""
    query = (
        select(Bed.room_id, func.count(Bed.id))
        .where(Bed.status == BedStatus.OCCUPIED)
        .group_by(Bed.room_id)
    )
    if room_id is not None:
        query = query.where(Bed.room_id == room_id)
    result = await session.execute(query)
    return {row_room_id: count for row_room_id, count in result.all()}


async def reconcile_room_counters(
    session: AsyncSession,
    room_id: uuid.UUID | None = None,
) -> tuple[int, list[OccupancyCorrection]]:
    """Overwrite every drifted ``current_occupancy`` with the occupied bed count.

    Room rows are locked (in id order) before counting, so an engine
    transaction that already adjusted a counter is waited for and then
    counted, and one that has not yet adjusted it will apply its delta on
    top of the corrected value. Bed and application rows are never written.

    Returns ``(rooms_checked, corrections)``.
    """
    query = (
        select(Room)
        .order_by(Room.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    if room_id is not None:
        query = query.where(Room.id == room_id)
    rooms = list((await session.execute(query)).scalars().all())
    if room_id is not None and not rooms:
        raise RoomNotFound()

    occupied = await count_occupied_beds(session, room_id)

    corrections: list[OccupancyCorrection] = []
    for room in rooms:
        actual = occupied.get(room.id, 0)
        if room.current_occupancy != actual:
            corrections.append(
                OccupancyCorrection(
                    room_id=room.id,
                    room_label=room.label,
                    previous=room.current_occupancy,
                    actual=actual,
                )
            )
            room.current_occupancy = actual
    await session.flush()
    return len(rooms), corrections


async def get_room_with_beds(session: AsyncSession, room_id: uuid.UUID) -> tuple[Room, list[Bed]]:
    room = await session.get(Room, room_id)
    if room is None:
        raise RoomNotFound()
    result = await session.execute(select(Bed).where(Bed.room_id == room_id).order_by(Bed.label))
    return room, list(result.scalars().all())


async def create_room_with_beds(
    session: AsyncSession,
    building: Building,
    label: str,
    capacity: int,
    room_type: str | None = None,
) -> Room:
    """Create a room and one ``available`` bed per unit of capacity (labels "1".."N").

    Stands in for the external building/room CRUD when seeding data.
    """
    room = Room(building_id=building.id, label=label, capacity=capacity, room_type=room_type)
    session.add(room)
    await session.flush()
    for number in range(1, capacity + 1):
        session.add(Bed(room_id=room.id, label=str(number), status=BedStatus.AVAILABLE))
    await session.flush()
    logger.info("Created room %s/%s with %d beds", building.name, label, capacity)
    return room
