"""Bed applications API router.

Students reserve a bed by applying for it; managers approve (check the
student in) or reject (release the bed). All state changes go through the
booking engine, which runs each one in its own transaction.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dormitory.api.deps import (
    Principal,
    get_booking_engine,
    get_current_principal,
    get_db,
    get_notification_dispatcher,
    require_staff,
    require_student,
)
from dormitory.booking import ledger
from dormitory.booking.engine import BookingEngine
from dormitory.booking.errors import ApplicationNotFound
from dormitory.models.application import Application
from dormitory.models.enums import ApplicationStatus
from dormitory.schemas.application import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    CheckInResponse,
    PendingCountResponse,
    RejectRequest,
)
from dormitory.services.notification_service import NotificationDispatcher

router = APIRouter(prefix="/api/v1/applications", tags=["applications"])


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply for a bed",
)
async def create_application(
    body: ApplicationCreate,
    principal: Principal = Depends(require_student),
    engine: BookingEngine = Depends(get_booking_engine),
) -> Application:
    """Reserve the bed for the calling student and open a pending application.

    The student id is taken from the token, never from the body.
    """
    return await engine.reserve(principal.id, body.bed_id)


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List applications",
)
async def list_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status", description="Filter by status"),
    student_id: str | None = Query(None, description="Filter by student id"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max records to return"),
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_staff),
) -> dict:
    items, total = await ledger.list_applications(
        db, status=status_filter, student_id=student_id, skip=skip, limit=limit
    )
    return {"items": items, "total": total}


@router.get(
    "/pending-count",
    response_model=PendingCountResponse,
    summary="Number of applications awaiting a decision",
)
async def pending_count(
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_staff),
) -> dict:
    return {"count": await ledger.count_pending(db)}


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get an application",
)
async def get_application(
    application_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Application:
    """Staff can read any application; a student only their own."""
    application = await ledger.get_application(db, application_id)
    if application is None or (not principal.is_staff and application.student_id != principal.id):
        raise ApplicationNotFound()
    return application


@router.post(
    "/{application_id}/approve",
    response_model=CheckInResponse,
    summary="Approve an application and check the student in",
)
async def approve_application(
    application_id: uuid.UUID,
    principal: Principal = Depends(require_staff),
    engine: BookingEngine = Depends(get_booking_engine),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> dict:
    """Approve a pending application.

    If the bed was taken in the meantime the application is rejected
    automatically and ``409 BED_OCCUPIED`` is returned.
    """
    confirmation = await engine.approve(application_id, principal.id)
    outcome = notifier.dispatch("check_in", confirmation)
    return {**asdict(confirmation), "notification_status": outcome["status"]}


@router.post(
    "/{application_id}/reject",
    response_model=ApplicationResponse,
    summary="Reject an application and release the bed",
)
async def reject_application(
    application_id: uuid.UUID,
    body: RejectRequest | None = None,
    principal: Principal = Depends(require_staff),
    engine: BookingEngine = Depends(get_booking_engine),
) -> Application:
    reason = body.reason if body is not None else None
    return await engine.reject(application_id, reason, principal.id)
