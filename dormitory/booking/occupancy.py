"""Occupancy records — open on check-in, close on check-out."""

import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dormitory.models.enums import OccupancyStatus
from dormitory.models.occupancy_record import OccupancyRecord


async def open_record(session: AsyncSession, student_id: str, bed_id: uuid.UUID) -> OccupancyRecord:
    record = OccupancyRecord(
        student_id=student_id,
        bed_id=bed_id,
        start_date=date.today(),
        status=OccupancyStatus.ACTIVE,
    )
    session.add(record)
    await session.flush()
    return record


async def active_for_student(
    session: AsyncSession,
    student_id: str,
    refresh: bool = False,
) -> OccupancyRecord | None:
    query = select(OccupancyRecord).where(
        OccupancyRecord.student_id == student_id,
        OccupancyRecord.status == OccupancyStatus.ACTIVE,
    )
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await session.execute(query)
    return result.scalar_one_or_none()


def close_record(record: OccupancyRecord) -> None:
    record.end_date = date.today()
    record.status = OccupancyStatus.CLOSED
