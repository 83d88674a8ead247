"""Booking engine — reserve, approve, reject, direct check-in, check-out, reconcile.

Each public operation is one database transaction in its own session. Every
transition that depends on a bed's current state is decided while holding
that bed's row lock, or through a single conditional update, so the
transitions of any one bed form a total order.

Lock order is always bed, then application, then student. Room counters are
only changed with an atomic ``current_occupancy ± 1`` expression while the
bed's lock is held.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from dormitory.booking import catalog, ledger, occupancy
from dormitory.booking.bed_store import BedStateStore
from dormitory.booking.errors import (
    AlreadyProcessed,
    ApplicationNotFound,
    BedNotAvailable,
    BedNotFound,
    BedOccupied,
    BookingError,
    BookingSystemError,
    ConcurrentModification,
    DuplicatePendingApplication,
    NotCheckedIn,
    StudentAlreadyCheckedIn,
    StudentNotFound,
)
from dormitory.booking.results import CheckInConfirmation, CheckOutConfirmation, ReconciliationReport
from dormitory.config import settings
from dormitory.models.application import Application
from dormitory.models.enums import BedStatus
from dormitory.models.student import Student
from dormitory.services.audit_service import AuditService

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATEs for serialization failure and deadlock
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


def translate_storage_error(exc: StaleDataError | DBAPIError) -> BookingError:
    """Map a storage-layer exception onto the booking error taxonomy.

    Version mismatches, unique-index backstops, serialization failures and
    deadlocks mean another transaction won: ``ConcurrentModification``.
    Anything else from the driver (lock timeout, locked database, lost
    connection) is a retryable ``BookingSystemError``.
    """
    if isinstance(exc, StaleDataError):
        return ConcurrentModification()
    if isinstance(exc, IntegrityError):
        return ConcurrentModification("This record was just claimed by another request. Please try again.")
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return ConcurrentModification()
    logger.error("Storage failure during booking transaction: %s", exc)
    return BookingSystemError()


class BookingEngine:
    """Orchestrates bed transitions across beds, rooms, applications and occupancy records."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        audit: AuditService | None = None,
        bed_store: BedStateStore | None = None,
        retry_attempts: int | None = None,
        retry_backoff_seconds: float | None = None,
        lock_timeout_ms: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._audit = audit
        self._beds = bed_store or BedStateStore()
        self._retry_attempts = settings.booking_retry_attempts if retry_attempts is None else retry_attempts
        if self._retry_attempts < 1:
            raise ValueError("retry_attempts must be >= 1")
        self._retry_backoff = (
            settings.booking_retry_backoff_seconds if retry_backoff_seconds is None else retry_backoff_seconds
        )
        self._lock_timeout_ms = settings.booking_lock_timeout_ms if lock_timeout_ms is None else lock_timeout_ms

    # ------------------------------------------------------------------
    # Transaction runner
    # ------------------------------------------------------------------

    async def _run(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run ``work`` in a fresh transaction, retrying retryable failures.

        Business errors propagate on the first attempt. Retryable errors
        re-run the whole unit from scratch, so the operation re-evaluates
        current state instead of replaying a stale decision.
        """
        for attempt in range(1, self._retry_attempts + 1):
            try:
                return await self._run_once(work)
            except BookingError as exc:
                if not exc.retryable or attempt == self._retry_attempts:
                    raise
                logger.warning(
                    "%s attempt %d/%d failed with %s, retrying",
                    operation,
                    attempt,
                    self._retry_attempts,
                    exc.code,
                )
                await asyncio.sleep(self._retry_backoff * attempt)
        raise AssertionError("unreachable")

    async def _run_once(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        deferred: BookingError | None = None
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    await self._apply_lock_timeout(session)
                    try:
                        result = await work(session)
                    except BookingError as exc:
                        if not exc.persist:
                            raise
                        # Commit what was written, report afterwards
                        deferred = exc
            except BookingError:
                raise
            except (StaleDataError, DBAPIError) as exc:
                raise translate_storage_error(exc) from exc

        if deferred is not None:
            raise deferred
        return result

    async def _apply_lock_timeout(self, session: AsyncSession) -> None:
        # SQLite bounds lock waits with the connection's busy timeout instead
        if session.bind.dialect.name == "postgresql":
            await session.execute(text(f"SET LOCAL lock_timeout = '{int(self._lock_timeout_ms)}ms'"))

    async def _audit_event(
        self,
        action: str,
        entity_type: str,
        entity_id: object,
        actor: str,
        detail: str | None = None,
    ) -> None:
        if self._audit is None:
            return
        await self._audit.record(action, entity_type, str(entity_id) if entity_id is not None else None, actor, detail)

    @staticmethod
    async def _lock_student(session: AsyncSession, student_id: str) -> Student | None:
        result = await session.execute(
            select(Student)
            .where(Student.id == student_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def reserve(self, student_id: str, bed_id: uuid.UUID) -> Application:
        """Reserve an available bed for a student and open a pending application.

        Raises:
            BedNotFound, BedNotAvailable, StudentNotFound,
            StudentAlreadyCheckedIn, DuplicatePendingApplication.
        """

        async def work(session: AsyncSession) -> tuple[Application, catalog.BedLocation]:
            bed = await self._beds.lock_for_update(session, bed_id)
            if bed is None:
                raise BedNotFound()
            if bed.status != BedStatus.AVAILABLE:
                raise BedNotAvailable()

            # Serializes the pending-application check for this student
            student = await self._lock_student(session, student_id)
            if student is None:
                raise StudentNotFound()
            if await occupancy.active_for_student(session, student_id) is not None:
                raise StudentAlreadyCheckedIn()
            if await ledger.has_pending(session, student_id):
                raise DuplicatePendingApplication()

            bed.status = BedStatus.RESERVED
            application = await ledger.create_pending(session, student_id, bed.id)
            return application, await catalog.locate_bed(session, bed)

        application, location = await self._run("reserve", work)
        logger.info(
            "Student %s reserved bed %s (%s room %s bed %s), application %s",
            student_id,
            bed_id,
            location.building_name,
            location.room_label,
            location.bed_label,
            application.id,
        )
        await self._audit_event(
            "RESERVE_BED",
            "APPLICATION",
            application.id,
            student_id,
            f"Applied for {location.building_name} Room {location.room_label} Bed {location.bed_label}",
        )
        return application

    async def approve(self, application_id: uuid.UUID, approver_id: str) -> CheckInConfirmation:
        """Approve a pending application and check the student into its bed.

        If the bed has meanwhile become occupied, the application is closed as
        rejected (committed) and ``BedOccupied`` is raised.

        Raises:
            ApplicationNotFound, AlreadyProcessed, BedNotFound, BedOccupied,
            StudentNotFound, StudentAlreadyCheckedIn.
        """

        async def work(session: AsyncSession) -> tuple[CheckInConfirmation, list[Application]]:
            application = await ledger.get_application(session, application_id)
            if application is None:
                raise ApplicationNotFound()
            if not application.is_pending:
                raise AlreadyProcessed()

            bed = await self._beds.lock_for_update(session, application.bed_id)
            # A concurrent approve/reject may have closed it while we waited
            application = await ledger.lock_application(session, application_id)
            if application is None:
                raise ApplicationNotFound()
            if not application.is_pending:
                raise AlreadyProcessed()
            if bed is None:
                raise BedNotFound("Bed no longer exists")

            if bed.status == BedStatus.OCCUPIED:
                ledger.mark_rejected(application, ledger.BED_NO_LONGER_AVAILABLE, approver_id)
                await session.flush()
                raise BedOccupied()

            student = await self._lock_student(session, application.student_id)
            if student is None:
                raise StudentNotFound()
            if await occupancy.active_for_student(session, student.id) is not None:
                raise StudentAlreadyCheckedIn()

            location = await catalog.locate_bed(session, bed)
            bed.status = BedStatus.OCCUPIED
            await session.flush()
            await catalog.adjust_occupancy(session, bed.room_id, +1)
            record = await occupancy.open_record(session, student.id, bed.id)
            _assign_location(student, location)
            ledger.mark_approved(application, approver_id)
            leftovers = await ledger.reject_leftover_pending(session, bed.id, application.id, approver_id)
            await session.flush()
            return CheckInConfirmation.build(student, location, record, application.id), leftovers

        try:
            confirmation, leftovers = await self._run("approve", work)
        except BedOccupied:
            logger.info("Application %s auto-rejected: bed already occupied", application_id)
            await self._audit_event(
                "REJECT_APPLICATION",
                "APPLICATION",
                application_id,
                approver_id,
                f"Auto-rejected: {ledger.BED_NO_LONGER_AVAILABLE}",
            )
            raise

        logger.info(
            "Application %s approved by %s: student %s checked into %s room %s bed %s",
            application_id,
            approver_id,
            confirmation.student_id,
            confirmation.building_name,
            confirmation.room_label,
            confirmation.bed_label,
        )
        await self._audit_event(
            "APPROVE_APPLICATION",
            "APPLICATION",
            application_id,
            approver_id,
            f"Approved room application for student {confirmation.student_id} ({confirmation.student_name}) - "
            f"{confirmation.building_name} Room {confirmation.room_label} Bed {confirmation.bed_label}",
        )
        for leftover in leftovers:
            await self._audit_event(
                "REJECT_APPLICATION",
                "APPLICATION",
                leftover.id,
                approver_id,
                f"Auto-rejected leftover pending application: {ledger.BED_NO_LONGER_AVAILABLE}",
            )
        return confirmation

    async def reject(self, application_id: uuid.UUID, reason: str | None, rejector_id: str) -> Application:
        """Reject a pending application and release its reserved bed.

        Raises:
            ApplicationNotFound, AlreadyProcessed.
        """
        reason = reason or settings.default_reject_reason

        async def work(session: AsyncSession) -> Application:
            application = await ledger.get_application(session, application_id)
            if application is None:
                raise ApplicationNotFound()
            if not application.is_pending:
                raise AlreadyProcessed()

            bed = await self._beds.lock_for_update(session, application.bed_id)
            application = await ledger.lock_application(session, application_id)
            if application is None:
                raise ApplicationNotFound()
            if not application.is_pending:
                raise AlreadyProcessed()

            if bed is not None and bed.status == BedStatus.RESERVED:
                bed.status = BedStatus.AVAILABLE
            ledger.mark_rejected(application, reason, rejector_id)
            await session.flush()
            return application

        application = await self._run("reject", work)
        logger.info("Application %s rejected by %s: %s", application_id, rejector_id, reason)
        await self._audit_event(
            "REJECT_APPLICATION",
            "APPLICATION",
            application_id,
            rejector_id,
            f"Rejected room application for student {application.student_id} - Reason: {reason}",
        )
        return application

    async def direct_check_in(self, student_id: str, bed_id: uuid.UUID, actor_id: str) -> CheckInConfirmation:
        """Check a student straight into an available bed, without an application.

        The conditional ``available -> occupied`` update is the only guard on
        the bed. Everything after it happens in the same transaction, so a
        missing or already-housed student rolls the bed back.

        Raises:
            BedNotFound, BedNotAvailable, StudentNotFound, StudentAlreadyCheckedIn.
        """

        async def work(session: AsyncSession) -> CheckInConfirmation:
            if not await self._beds.try_transition(session, bed_id, BedStatus.AVAILABLE, BedStatus.OCCUPIED):
                if await self._beds.get(session, bed_id) is None:
                    raise BedNotFound()
                raise BedNotAvailable("Bed is not available. It may have been booked by someone else.")

            student = await self._lock_student(session, student_id)
            if student is None:
                raise StudentNotFound()
            if await occupancy.active_for_student(session, student_id) is not None:
                raise StudentAlreadyCheckedIn()

            bed = await self._beds.get(session, bed_id, refresh=True)
            location = await catalog.locate_bed(session, bed)
            await catalog.adjust_occupancy(session, bed.room_id, +1)
            record = await occupancy.open_record(session, student.id, bed.id)
            _assign_location(student, location)
            await session.flush()
            return CheckInConfirmation.build(student, location, record)

        confirmation = await self._run("direct_check_in", work)
        logger.info(
            "Student %s checked directly into %s room %s bed %s by %s",
            student_id,
            confirmation.building_name,
            confirmation.room_label,
            confirmation.bed_label,
            actor_id,
        )
        await self._audit_event(
            "DIRECT_CHECK_IN",
            "STUDENT",
            student_id,
            actor_id,
            f"Checked into {confirmation.building_name} Room {confirmation.room_label} Bed {confirmation.bed_label}",
        )
        return confirmation

    async def check_out(self, student_id: str, actor_id: str) -> CheckOutConfirmation:
        """Release the student's bed and close their active occupancy record.

        Raises:
            NotCheckedIn.
        """

        async def work(session: AsyncSession) -> CheckOutConfirmation:
            record = await occupancy.active_for_student(session, student_id)
            if record is None:
                raise NotCheckedIn()

            bed = await self._beds.lock_for_update(session, record.bed_id)
            # A concurrent check-out may have closed it while we waited
            record = await occupancy.active_for_student(session, student_id, refresh=True)
            if record is None:
                raise NotCheckedIn()
            if bed is None:
                raise BedNotFound("Bed of the active occupancy record no longer exists")

            if bed.status == BedStatus.OCCUPIED:
                await catalog.adjust_occupancy(session, bed.room_id, -1)
            else:
                logger.warning(
                    "Checking student %s out of bed %s whose status is %s; room counter left unchanged",
                    student_id,
                    bed.id,
                    bed.status.value,
                )
            bed.status = BedStatus.AVAILABLE
            occupancy.close_record(record)

            student = await self._lock_student(session, student_id)
            if student is not None:
                _clear_location(student)
            location = await catalog.locate_bed(session, bed)
            await session.flush()
            return CheckOutConfirmation(
                student_id=student_id,
                student_name=student.name if student else None,
                student_email=student.email if student else None,
                building_name=location.building_name,
                room_label=location.room_label,
                bed_label=location.bed_label,
                bed_id=location.bed_id,
                room_id=location.room_id,
                occupancy_record_id=record.id,
                start_date=record.start_date,
                end_date=record.end_date,
            )

        confirmation = await self._run("check_out", work)
        logger.info(
            "Student %s checked out of %s room %s bed %s by %s",
            student_id,
            confirmation.building_name,
            confirmation.room_label,
            confirmation.bed_label,
            actor_id,
        )
        await self._audit_event(
            "CHECK_OUT",
            "STUDENT",
            student_id,
            actor_id,
            f"Checked out of {confirmation.building_name} Room {confirmation.room_label} Bed {confirmation.bed_label}",
        )
        return confirmation

    async def reconcile_occupancy(
        self,
        room_id: uuid.UUID | None = None,
        actor_id: str = "system",
    ) -> ReconciliationReport:
        """Recompute room occupancy counters from bed rows and fix any drift.

        Idempotent; never touches bed or application status.

        Raises:
            RoomNotFound: ``room_id`` was given and does not exist.
        """

        async def work(session: AsyncSession) -> ReconciliationReport:
            rooms_checked, corrections = await catalog.reconcile_room_counters(session, room_id)
            return ReconciliationReport(rooms_checked=rooms_checked, corrections=corrections)

        report = await self._run("reconcile_occupancy", work)
        for correction in report.corrections:
            logger.warning(
                "Room %s (%s) occupancy drift corrected: %d -> %d",
                correction.room_id,
                correction.room_label,
                correction.previous,
                correction.actual,
            )
        if report.changed:
            await self._audit_event(
                "RECONCILE_OCCUPANCY",
                "ROOM",
                room_id,
                actor_id,
                "; ".join(f"{c.room_label}: {c.previous} -> {c.actual}" for c in report.corrections),
            )
        logger.info(
            "Occupancy reconciliation checked %d rooms, corrected %d",
            report.rooms_checked,
            len(report.corrections),
        )
        return report


def _assign_location(student: Student, location: catalog.BedLocation) -> None:
    student.building_name = location.building_name
    student.room_label = location.room_label
    student.bed_label = location.bed_label


def _clear_location(student: Student) -> None:
    student.building_name = None
    student.room_label = None
    student.bed_label = None
