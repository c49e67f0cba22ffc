"""Domain Errors

Every failure the booking core reports belongs to one of these families.
The API layer maps each family to a single HTTP status code.
"""
from typing import Any, Dict, Optional


class BookingDomainError(Exception):
    """Base class for all booking core errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(BookingDomainError, ValueError):
    """Request failed a business rule (dates, capacity, status value)"""


class InvalidStatus(ValidationError):
    """Unknown booking status value"""

    def __init__(self, value: Any):
        super().__init__("Invalid status value", details={"status": str(value)})


class InvalidTransition(ValidationError):
    """Status change not allowed from the booking's current status"""


class NotFoundError(BookingDomainError):
    """Referenced entity does not exist"""


class RoomNotFound(NotFoundError):
    def __init__(self, room_id: Any):
        super().__init__("Room not found", details={"room_id": str(room_id)})


class BookingNotFound(NotFoundError):
    def __init__(self, booking_ref: Any):
        super().__init__("Booking not found", details={"booking": str(booking_ref)})


class UserNotFound(NotFoundError):
    def __init__(self, user_ref: Any):
        super().__init__("User not found", details={"user": str(user_ref)})


class ConflictError(BookingDomainError):
    """Requested dates overlap an active booking, or the room is blocked"""


class UnauthorizedError(BookingDomainError):
    """Principal lacks the role or ownership the operation requires"""


class InternalError(BookingDomainError):
    """Persistence or locking failure; nothing was committed"""


class DuplicateKeyError(InternalError):
    """A unique field (booking number, user email) is already taken in storage"""
