"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Collection, List, Optional
from uuid import UUID

from domain.auth import UserInDB
from domain.entities import Booking, Room
from domain.enums import BookingStatus, RoomStatus, RoomType


class RoomRepository(ABC):
    """Repository interface for Room Aggregate"""

    @abstractmethod
    async def next_id(self) -> int:
        """Reserve the next room identifier"""
        pass

    @abstractmethod
    async def save(self, room: Room) -> Room:
        """Save room"""
        pass

    @abstractmethod
    async def find_by_id(self, room_id: int) -> Optional[Room]:
        """Find room by ID"""
        pass

    @abstractmethod
    async def find_by_number(self, room_number: str) -> Optional[Room]:
        """Find room by its unique number"""
        pass

    @abstractmethod
    async def find_all(
        self,
        status: Optional[RoomStatus] = None,
        room_type: Optional[RoomType] = None,
        property_id: Optional[str] = None,
    ) -> List[Room]:
        """Find rooms ordered by room number, optionally filtered"""
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        """Update room"""
        pass

    @abstractmethod
    async def delete(self, room_id: int) -> bool:
        """Delete room"""
        pass


class BookingRepository(ABC):
    """Repository interface for Booking Aggregate"""

    @abstractmethod
    async def save(self, booking: Booking) -> Booking:
        """Save booking"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        pass

    @abstractmethod
    async def find_by_number(self, booking_number: str) -> Optional[Booking]:
        """Find booking by booking number"""
        pass

    @abstractmethod
    async def find_by_user_id(self, user_id: UUID) -> List[Booking]:
        """Find bookings for a user, latest check-in first"""
        pass

    @abstractmethod
    async def find_by_room(
        self,
        room_id: int,
        exclude_statuses: Collection[BookingStatus] = (),
    ) -> List[Booking]:
        """Find bookings for a room whose status is not excluded"""
        pass

    @abstractmethod
    async def find_by_rooms(self, room_ids: Collection[int]) -> List[Booking]:
        """Find bookings for any of the given rooms"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Booking]:
        """Find all bookings, latest check-in first"""
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        pass

    @abstractmethod
    async def delete(self, booking_id: UUID) -> bool:
        """Remove a booking; only used to undo an uncommitted write"""
        pass


class UserRepository(ABC):
    """Repository interface for users (guests and staff)"""

    @abstractmethod
    async def save(self, user: UserInDB) -> UserInDB:
        """Save user"""
        pass

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        """Find user by ID"""
        pass

    @abstractmethod
    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        """Find user by login name"""
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        """Find user by email address"""
        pass
