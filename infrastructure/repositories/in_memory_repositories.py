"""In-Memory Repository Implementations

Entities are copied on the way in and out so that callers only change stored
state through save/update, as they would with a database.
"""
import itertools
from typing import Collection, Dict, List, Optional
from uuid import UUID

from domain.auth import UserInDB
from domain.entities import Booking, Room
from domain.enums import BookingStatus, RoomStatus, RoomType
from domain.errors import DuplicateKeyError
from domain.repositories import BookingRepository, RoomRepository, UserRepository


def _latest_check_in_first(bookings: List[Booking]) -> List[Booking]:
    return sorted(bookings, key=lambda b: b.check_in_date, reverse=True)


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self):
        self._storage: Dict[int, Room] = {}
        self._ids = itertools.count(1)

    async def next_id(self) -> int:
        return next(self._ids)

    async def save(self, room: Room) -> Room:
        """Save room to memory"""
        self._storage[room.room_id] = room.model_copy(deep=True)
        return room

    async def find_by_id(self, room_id: int) -> Optional[Room]:
        room = self._storage.get(room_id)
        return room.model_copy(deep=True) if room else None

    async def find_by_number(self, room_number: str) -> Optional[Room]:
        for room in self._storage.values():
            if room.room_number == room_number:
                return room.model_copy(deep=True)
        return None

    async def find_all(
        self,
        status: Optional[RoomStatus] = None,
        room_type: Optional[RoomType] = None,
        property_id: Optional[str] = None,
    ) -> List[Room]:
        rooms = [
            r for r in self._storage.values()
            if (status is None or r.status == status)
            and (room_type is None or r.room_type == room_type)
            and (property_id is None or r.property_id == property_id)
        ]
        rooms.sort(key=lambda r: r.room_number)
        return [r.model_copy(deep=True) for r in rooms]

    async def update(self, room: Room) -> Room:
        if room.room_id in self._storage:
            self._storage[room.room_id] = room.model_copy(deep=True)
            return room
        raise ValueError("Room not found")

    async def delete(self, room_id: int) -> bool:
        if room_id in self._storage:
            del self._storage[room_id]
            return True
        return False


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Booking] = {}

    async def save(self, booking: Booking) -> Booking:
        """Save booking to memory"""
        for existing in self._storage.values():
            if (existing.booking_number == booking.booking_number
                    and existing.booking_id != booking.booking_id):
                raise DuplicateKeyError(
                    "Booking number already in use",
                    details={"booking_number": booking.booking_number},
                )
        self._storage[booking.booking_id] = booking.model_copy(deep=True)
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        booking = self._storage.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def find_by_number(self, booking_number: str) -> Optional[Booking]:
        for booking in self._storage.values():
            if booking.booking_number == booking_number:
                return booking.model_copy(deep=True)
        return None

    async def find_by_user_id(self, user_id: UUID) -> List[Booking]:
        return _latest_check_in_first(
            [b.model_copy(deep=True) for b in self._storage.values() if b.user_id == user_id]
        )

    async def find_by_room(
        self,
        room_id: int,
        exclude_statuses: Collection[BookingStatus] = (),
    ) -> List[Booking]:
        return [
            b.model_copy(deep=True) for b in self._storage.values()
            if b.room_id == room_id and b.status not in exclude_statuses
        ]

    async def find_by_rooms(self, room_ids: Collection[int]) -> List[Booking]:
        wanted = set(room_ids)
        return [b.model_copy(deep=True) for b in self._storage.values() if b.room_id in wanted]

    async def find_all(self) -> List[Booking]:
        return _latest_check_in_first([b.model_copy(deep=True) for b in self._storage.values()])

    async def update(self, booking: Booking) -> Booking:
        if booking.booking_id in self._storage:
            self._storage[booking.booking_id] = booking.model_copy(deep=True)
            return booking
        raise ValueError("Booking not found")

    async def delete(self, booking_id: UUID) -> bool:
        if booking_id in self._storage:
            del self._storage[booking_id]
            return True
        return False


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository"""

    def __init__(self):
        self._storage: Dict[UUID, UserInDB] = {}

    async def save(self, user: UserInDB) -> UserInDB:
        """Save user; usernames and emails (case-insensitive) are unique"""
        email = user.email.lower() if user.email else None
        for existing in self._storage.values():
            if existing.user_id == user.user_id:
                continue
            if existing.username == user.username or (
                    email and existing.email and existing.email.lower() == email):
                raise DuplicateKeyError("User already exists", details={"username": user.username})
        self._storage[user.user_id] = user.model_copy(deep=True)
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        user = self._storage.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        for user in self._storage.values():
            if user.username == username:
                return user.model_copy(deep=True)
        return None

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        wanted = email.lower()
        for user in self._storage.values():
            if user.email and user.email.lower() == wanted:
                return user.model_copy(deep=True)
        return None
