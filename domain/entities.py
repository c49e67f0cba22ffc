"""Domain Entities - Aggregates"""
import random
import time
from datetime import datetime
from decimal import Decimal
from typing import Dict, FrozenSet, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from domain.enums import BookingStatus, RoomStatus, RoomType
from domain.errors import InvalidStatus, InvalidTransition, ValidationError
from domain.value_objects import DateRange

_ALL_STATUSES = frozenset(BookingStatus)

# Allowed target statuses keyed by current status
TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: _ALL_STATUSES,
    BookingStatus.CONFIRMED: _ALL_STATUSES,
    BookingStatus.CANCEL_PENDING: _ALL_STATUSES,
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

# Room status forced by a booking entering a status; absent means unchanged
ROOM_STATUS_EFFECTS: Dict[BookingStatus, RoomStatus] = {
    BookingStatus.CHECKED_OUT: RoomStatus.AVAILABLE,
    BookingStatus.CANCELLED: RoomStatus.AVAILABLE,
    BookingStatus.CONFIRMED: RoomStatus.BOOKED,
    BookingStatus.CHECKED_IN: RoomStatus.BOOKED,
}

CANCELLABLE_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CANCEL_PENDING,
})


def parse_status(value) -> BookingStatus:
    """Coerce a raw status value, rejecting anything unrecognised"""
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus(value)
    except ValueError:
        raise InvalidStatus(value) from None


class Room(BaseModel):
    """Room Aggregate Root Entity"""

    room_id: int
    room_number: str
    room_type: RoomType
    price: Decimal = Field(gt=0)
    capacity: int = Field(gt=0)
    air_conditioned: bool = False
    description: Optional[str] = None
    amenities: List[str] = []
    property_id: str
    status: RoomStatus = RoomStatus.AVAILABLE

    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True

    def is_blocked(self) -> bool:
        """Rooms under maintenance take no bookings regardless of dates"""
        return self.status == RoomStatus.MAINTENANCE

    def set_status(self, status: RoomStatus) -> None:
        self.status = status
        self.modified_at = datetime.utcnow()


class Booking(BaseModel):
    """Booking Aggregate Root Entity"""

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)
    booking_number: str

    # References
    user_id: UUID
    room_id: int
    created_by: Optional[UUID] = None

    # Stay
    date_range: DateRange
    guest_count: int = Field(gt=0)
    nights: int
    total_amount: Decimal
    special_requests: Optional[str] = None

    status: BookingStatus = BookingStatus.PENDING

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        user_id: UUID,
        room: Room,
        date_range: DateRange,
        guest_count: int,
        special_requests: Optional[str] = None,
        created_by: Optional[UUID] = None,
        booking_number: Optional[str] = None,
    ) -> "Booking":
        """Create a booking, snapshotting the room's nightly price"""
        if guest_count > room.capacity:
            raise ValidationError(
                f"Room capacity exceeded. Maximum capacity is {room.capacity} guests"
            )

        nights = date_range.nights()
        status = BookingStatus.CONFIRMED if created_by else BookingStatus.PENDING

        return Booking(
            booking_number=booking_number or Booking.generate_booking_number(),
            user_id=user_id,
            room_id=room.room_id,
            created_by=created_by,
            date_range=date_range,
            guest_count=guest_count,
            nights=nights,
            total_amount=room.price * nights,
            special_requests=special_requests,
            status=status,
        )

    @staticmethod
    def generate_booking_number() -> str:
        """BK + last 8 digits of the epoch millis + 2 random digits"""
        millis = str(int(time.time() * 1000))[-8:]
        return f"BK{millis}{random.randint(0, 99):02d}"

    # ==================== STATE TRANSITION METHODS ====================
    def transition_to(self, new_status) -> Optional[RoomStatus]:
        """Move to ``new_status`` and return the room status it forces, if any"""
        new_status = parse_status(new_status)
        if new_status not in TRANSITIONS[self.status]:
            raise InvalidTransition(
                f"Cannot change booking from {self.status.value} to {new_status.value}"
            )

        self.status = new_status
        self.modified_at = datetime.utcnow()
        self.version += 1
        return ROOM_STATUS_EFFECTS.get(new_status)

    def cancel(self) -> Optional[RoomStatus]:
        """Guest cancellation, recorded as an early check-out"""
        if self.status not in CANCELLABLE_STATUSES:
            raise InvalidTransition(
                f"Cannot cancel booking with status {self.status.value}"
            )
        return self.transition_to(BookingStatus.CHECKED_OUT)

    # ==================== QUERY METHODS ====================
    def holds_room(self) -> bool:
        """True while the booking still blocks its dates"""
        return not self.status.is_terminal()

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id

    @property
    def check_in_date(self):
        return self.date_range.check_in

    @property
    def check_out_date(self):
        return self.date_range.check_out
