"""Builds every component of the service once per process."""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from application.notifications import NotificationDispatcher
from application.services import AvailabilityService, BookingService, OccupancyService, RoomService
from domain.auth import UserInDB
from domain.entities import Room
from domain.enums import Role, RoomType
from domain.notifications import BookingNotifier
from domain.repositories import BookingRepository, RoomRepository, UserRepository
from infrastructure.config import Settings
from infrastructure.locks import LockRegistry
from infrastructure.notifications import LoggingBookingNotifier
from infrastructure.repositories.in_memory_repositories import (
    InMemoryBookingRepository, InMemoryRoomRepository, InMemoryUserRepository,
)
from infrastructure.security import SecurityService

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"username": "manager", "password": "manager123", "full_name": "Hotel Manager",
     "email": "manager@example.com", "role": Role.MANAGER},
    {"username": "frontdesk", "password": "frontdesk123", "full_name": "Front Desk",
     "email": "frontdesk@example.com", "role": Role.FRONT_DESK},
    {"username": "guest", "password": "guest123", "full_name": "Demo Guest",
     "email": "guest@example.com", "role": Role.CUSTOMER},
]

DEMO_ROOMS = [
    {"room_number": "101", "room_type": RoomType.STANDARD, "price": Decimal("100.00"), "capacity": 2},
    {"room_number": "102", "room_type": RoomType.STANDARD, "price": Decimal("100.00"), "capacity": 2,
     "air_conditioned": True},
    {"room_number": "201", "room_type": RoomType.DELUXE, "price": Decimal("180.00"), "capacity": 3,
     "air_conditioned": True},
    {"room_number": "301", "room_type": RoomType.SUITE, "price": Decimal("320.00"), "capacity": 4,
     "air_conditioned": True},
]


@dataclass
class AppContext:
    """Explicit handle threaded through request handlers via app.state"""
    settings: Settings
    security: SecurityService
    rooms: RoomRepository
    bookings: BookingRepository
    users: UserRepository
    dispatcher: NotificationDispatcher
    availability_service: AvailabilityService
    booking_service: BookingService
    room_service: RoomService
    occupancy_service: OccupancyService


def build_context(
    settings: Settings,
    notifier: Optional[BookingNotifier] = None,
    today: Callable[[], date] = date.today,
) -> AppContext:
    security = SecurityService(settings)
    rooms = InMemoryRoomRepository()
    bookings = InMemoryBookingRepository()
    users = InMemoryUserRepository()
    locks = LockRegistry(settings.ROOM_LOCK_TIMEOUT_SECONDS, resource="room")
    guest_locks = LockRegistry(settings.ROOM_LOCK_TIMEOUT_SECONDS, resource="guest")
    dispatcher = NotificationDispatcher(notifier or LoggingBookingNotifier())

    availability = AvailabilityService(rooms, bookings, settings.STRICT_ROOM_STATUS_CHECK)
    return AppContext(
        settings=settings,
        security=security,
        rooms=rooms,
        bookings=bookings,
        users=users,
        dispatcher=dispatcher,
        availability_service=availability,
        booking_service=BookingService(
            bookings, rooms, users, availability, locks, dispatcher, security,
            today=today, guest_locks=guest_locks,
        ),
        room_service=RoomService(rooms, bookings, locks, settings.DEFAULT_PROPERTY_ID),
        occupancy_service=OccupancyService(
            rooms, bookings, settings.OCCUPANCY_WINDOW_DAYS,
            today=today, max_report_days=settings.MAX_REPORT_DAYS,
        ),
    )


async def seed_demo_data(context: AppContext) -> None:
    """Load demo staff, guest and rooms into empty repositories"""
    for seed in DEMO_USERS:
        if await context.users.find_by_username(seed["username"]) is not None:
            continue
        await context.users.save(UserInDB(
            username=seed["username"],
            full_name=seed["full_name"],
            email=seed["email"],
            role=seed["role"],
            hashed_password=context.security.get_password_hash(seed["password"]),
        ))

    for seed in DEMO_ROOMS:
        if await context.rooms.find_by_number(seed["room_number"]) is not None:
            continue
        await context.rooms.save(Room(
            room_id=await context.rooms.next_id(),
            property_id=context.settings.DEFAULT_PROPERTY_ID,
            **seed,
        ))
    logger.info("Seeded %s demo users and %s demo rooms", len(DEMO_USERS), len(DEMO_ROOMS))
