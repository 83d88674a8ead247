"""Booking engine error taxonomy.

Business outcomes (not found, lost race, rule violations) are raised as
``BookingError`` subclasses carrying a stable ``code`` for the HTTP layer.
``ConcurrentModification`` and retryable ``BookingSystemError`` mean the whole
operation can be re-run from scratch.
"""

from fastapi import status


class BookingError(Exception):
    """Base class for every error the booking engine reports."""

    code: str = "BOOKING_ERROR"
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Booking operation failed"
    retryable: bool = False
    # Commit the transaction's writes before raising (see BedOccupied)
    persist: bool = False

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.message, "code": self.code}


class NotFound(BookingError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class BedNotFound(NotFound):
    code = "BED_NOT_FOUND"
    default_message = "Bed not found"


class RoomNotFound(NotFound):
    code = "ROOM_NOT_FOUND"
    default_message = "Room not found"


class ApplicationNotFound(NotFound):
    code = "APPLICATION_NOT_FOUND"
    default_message = "Application not found"


class StudentNotFound(NotFound):
    code = "STUDENT_NOT_FOUND"
    default_message = "Student not found"


class AlreadyProcessed(BookingError):
    code = "ALREADY_PROCESSED"
    default_message = "This application has already been processed"


class BedNotAvailable(BookingError):
    code = "BED_NOT_AVAILABLE"
    status_code = status.HTTP_409_CONFLICT
    default_message = "This bed was just taken, please pick another"


class BedOccupied(BookingError):
    """The application's bed was occupied by another claim.

    The application has been closed as rejected; that rejection is committed
    before this error reaches the caller.
    """

    code = "BED_OCCUPIED"
    status_code = status.HTTP_409_CONFLICT
    default_message = "This bed has already been assigned to another student"
    persist = True


class DuplicatePendingApplication(BookingError):
    code = "DUPLICATE_PENDING_APPLICATION"
    status_code = status.HTTP_409_CONFLICT
    default_message = "You already have a pending room application"


class StudentAlreadyCheckedIn(BookingError):
    code = "ALREADY_CHECKED_IN"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Student is already checked in"


class NotCheckedIn(BookingError):
    code = "NOT_CHECKED_IN"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Student is not currently checked in"


class ConcurrentModification(BookingError):
    code = "CONCURRENT_MODIFICATION"
    status_code = status.HTTP_409_CONFLICT
    default_message = "This record was just modified by another request. Please try again."
    retryable = True


class BookingSystemError(BookingError):
    code = "SYSTEM_ERROR"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The booking service is temporarily unavailable. Please try again."

    def __init__(self, message: str | None = None, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable
