"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCEL_PENDING = "cancelPending"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.CHECKED_OUT})

# Bookings in these statuses no longer hold the room for their dates
RELEASED_STATUSES = TERMINAL_STATUSES


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    PENDING = "pending"
    MAINTENANCE = "maintenance"


class RoomType(str, Enum):
    STANDARD = "standard"
    SUITE = "suite"
    DELUXE = "deluxe"


class Role(str, Enum):
    CUSTOMER = "customer"
    FRONT_DESK = "front_desk"
    MANAGER = "manager"

    def is_staff(self) -> bool:
        return self in STAFF_ROLES


STAFF_ROLES = frozenset({Role.FRONT_DESK, Role.MANAGER})
