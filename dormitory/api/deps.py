"""Shared API dependencies — single import point for all routers.

Re-exports database session and authentication dependencies so that router
modules can import everything they need from one place::

    from dormitory.api.deps import get_db, require_roles
"""

from functools import lru_cache

from dormitory.auth.dependencies import Principal, get_current_principal, require_roles
from dormitory.booking.engine import BookingEngine
from dormitory.database import async_session_factory, get_db
from dormitory.services.audit_service import AuditService
from dormitory.services.notification_service import NotificationDispatcher

# Role groups used by the routers
require_staff = require_roles("manager", "admin")
require_student = require_roles("student")
require_admin = require_roles("admin")


@lru_cache
def get_booking_engine() -> BookingEngine:
    """Process-wide booking engine bound to the application session factory."""
    return BookingEngine(async_session_factory, audit=AuditService(async_session_factory))


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()


__all__ = [
    "Principal",
    "get_db",
    "get_current_principal",
    "require_roles",
    "require_staff",
    "require_student",
    "require_admin",
    "get_booking_engine",
    "get_notification_dispatcher",
]
