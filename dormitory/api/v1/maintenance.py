"""Maintenance API router — administrative repair operations."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from dormitory.api.deps import Principal, get_booking_engine, require_admin
from dormitory.booking.engine import BookingEngine
from dormitory.booking.results import ReconciliationReport
from dormitory.schemas.catalog import ReconciliationResponse

router = APIRouter(prefix="/api/v1/maintenance", tags=["maintenance"])


@router.post(
    "/reconcile-occupancy",
    response_model=ReconciliationResponse,
    summary="Recompute room occupancy counters from bed status",
)
async def reconcile_occupancy(
    room_id: uuid.UUID | None = Query(None, description="Limit to one room"),
    principal: Principal = Depends(require_admin),
    engine: BookingEngine = Depends(get_booking_engine),
) -> ReconciliationReport:
    """Overwrite drifted ``current_occupancy`` values. Safe to run at any time."""
    return await engine.reconcile_occupancy(room_id, actor_id=principal.id)
