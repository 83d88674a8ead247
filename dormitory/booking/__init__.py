"""Bed reservation engine: bed state store, catalog, ledger, occupancy and the orchestrator."""

from dormitory.booking.bed_store import BedStateStore
from dormitory.booking.engine import BookingEngine
from dormitory.booking.results import CheckInConfirmation, CheckOutConfirmation, ReconciliationReport

__all__ = [
    "BedStateStore",
    "BookingEngine",
    "CheckInConfirmation",
    "CheckOutConfirmation",
    "ReconciliationReport",
]
