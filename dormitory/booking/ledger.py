"""Application ledger — bed applications and their one-way lifecycle."""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dormitory.booking.errors import AlreadyProcessed
from dormitory.database import utcnow
from dormitory.models.application import Application
from dormitory.models.enums import ApplicationStatus

logger = logging.getLogger(__name__)

BED_NO_LONGER_AVAILABLE = "Bed is no longer available"


async def has_pending(session: AsyncSession, student_id: str) -> bool:
    result = await session.execute(
        select(Application.id)
        .where(
            Application.student_id == student_id,
            Application.status == ApplicationStatus.PENDING,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def create_pending(session: AsyncSession, student_id: str, bed_id: uuid.UUID) -> Application:
    application = Application(
        student_id=student_id,
        bed_id=bed_id,
        status=ApplicationStatus.PENDING,
    )
    session.add(application)
    await session.flush()
    return application


async def get_application(session: AsyncSession, application_id: uuid.UUID) -> Application | None:
    return await session.get(Application, application_id)


async def lock_application(session: AsyncSession, application_id: uuid.UUID) -> Application | None:
    """Re-read an application under a row lock, discarding any cached copy."""
    result = await session.execute(
        select(Application)
        .where(Application.id == application_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _close(application: Application, status: ApplicationStatus, decided_by: str) -> None:
    if not application.is_pending:
        raise AlreadyProcessed()
    application.status = status
    application.decided_at = utcnow()
    application.decided_by = decided_by


def mark_approved(application: Application, approver_id: str) -> None:
    _close(application, ApplicationStatus.APPROVED, approver_id)


def mark_rejected(application: Application, reason: str, rejector_id: str) -> None:
    _close(application, ApplicationStatus.REJECTED, rejector_id)
    application.rejection_reason = reason


async def reject_leftover_pending(
    session: AsyncSession,
    bed_id: uuid.UUID,
    keep_id: uuid.UUID,
    decided_by: str,
) -> list[Application]:
    """Close any other pending application still pointing at ``bed_id``.

    A reserved bed carries exactly one pending application, so anything found
    here is an anomaly (e.g. rows written by an older version of the flow).
    """
    result = await session.execute(
        select(Application)
        .where(
            Application.bed_id == bed_id,
            Application.status == ApplicationStatus.PENDING,
            Application.id != keep_id,
        )
        .with_for_update()
    )
    leftovers = list(result.scalars().all())
    for application in leftovers:
        logger.warning(
            "Rejecting leftover pending application %s for bed %s (student %s)",
            application.id,
            bed_id,
            application.student_id,
        )
        mark_rejected(application, BED_NO_LONGER_AVAILABLE, decided_by)
    return leftovers


async def list_applications(
    session: AsyncSession,
    status: ApplicationStatus | None = None,
    student_id: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """Return a page of applications (newest first) and the total match count."""
    base_query = select(Application)
    count_query = select(func.count()).select_from(Application)
    if status is not None:
        base_query = base_query.where(Application.status == status)
        count_query = count_query.where(Application.status == status)
    if student_id is not None:
        base_query = base_query.where(Application.student_id == student_id)
        count_query = count_query.where(Application.student_id == student_id)

    total = (await session.execute(count_query)).scalar_one()
    result = await session.execute(
        base_query.order_by(Application.created_at.desc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def count_pending(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Application)
        .where(Application.status == ApplicationStatus.PENDING)
    )
    return result.scalar_one()
