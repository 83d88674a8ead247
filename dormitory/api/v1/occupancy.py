"""Occupancy API router — direct check-in and check-out by dormitory staff."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, status

from dormitory.api.deps import Principal, get_booking_engine, get_notification_dispatcher, require_staff
from dormitory.booking.engine import BookingEngine
from dormitory.schemas.application import CheckInResponse, CheckOutResponse, DirectCheckInRequest
from dormitory.services.notification_service import NotificationDispatcher

router = APIRouter(prefix="/api/v1/occupancy", tags=["occupancy"])


@router.post(
    "/check-in",
    response_model=CheckInResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check a student directly into an available bed",
)
async def direct_check_in(
    body: DirectCheckInRequest,
    principal: Principal = Depends(require_staff),
    engine: BookingEngine = Depends(get_booking_engine),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> dict:
    """Walk-in assignment without an application.

    Returns ``409 BED_NOT_AVAILABLE`` when the bed is reserved or occupied,
    including when a concurrent request claimed it first.
    """
    confirmation = await engine.direct_check_in(body.student_id, body.bed_id, principal.id)
    outcome = notifier.dispatch("check_in", confirmation)
    return {**asdict(confirmation), "notification_status": outcome["status"]}


@router.post(
    "/check-out/{student_id}",
    response_model=CheckOutResponse,
    summary="Check a student out and release their bed",
)
async def check_out(
    student_id: str,
    principal: Principal = Depends(require_staff),
    engine: BookingEngine = Depends(get_booking_engine),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> dict:
    confirmation = await engine.check_out(student_id, principal.id)
    outcome = notifier.dispatch("check_out", confirmation)
    return {**asdict(confirmation), "notification_status": outcome["status"]}
