"""Application Services - Business use cases"""
import asyncio
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional, Tuple
from uuid import UUID

from application.notifications import NotificationDispatcher
from domain.auth import User, UserInDB
from domain.entities import Booking, Room, parse_status
from domain.enums import RELEASED_STATUSES, Role, RoomStatus, RoomType
from domain.errors import (
    BookingNotFound, ConflictError, DuplicateKeyError, InternalError, RoomNotFound,
    UnauthorizedError, UserNotFound, ValidationError,
)
from domain.notifications import BookingSummary
from domain.occupancy import OccupancyReport, build_occupancy_report
from domain.repositories import BookingRepository, RoomRepository, UserRepository
from domain.value_objects import DateRange
from infrastructure.locks import LockRegistry
from infrastructure.security import SecurityService

logger = logging.getLogger(__name__)

Clock = Callable[[], date]
ConflictPredicate = Callable[[DateRange, DateRange], bool]


def _require_role(actor: User, *roles: Role, message: str = "Not authorized") -> None:
    if actor.role not in roles:
        raise UnauthorizedError(message)


def _require_staff(actor: User, message: str = "Not authorized") -> None:
    _require_role(actor, Role.MANAGER, Role.FRONT_DESK, message=message)


def _stay(check_in: date, check_out: date) -> DateRange:
    if check_out <= check_in:
        raise ValidationError("Check-out date must be after check-in date")
    return DateRange(check_in=check_in, check_out=check_out)


async def _run_to_completion(coro: Awaitable):
    """Run a write sequence that a cancelled caller must not cut in half"""
    task = asyncio.ensure_future(coro)
    try:
        return await asyncio.shield(task)
    except asyncio.CancelledError:
        await asyncio.wait([task])
        raise


class AvailabilityService:
    """Decides whether a room can be reserved for a date range"""

    def __init__(self,
                 room_repo: RoomRepository,
                 booking_repo: BookingRepository,
                 strict_room_status: bool = True):
        self.room_repo = room_repo
        self.booking_repo = booking_repo
        self.strict_room_status = strict_room_status

    async def load_room(self, room_id: int) -> Room:
        room = await self.room_repo.find_by_id(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    async def find_conflicts(
        self,
        room: Room,
        stay: DateRange,
        exclude_booking_id: Optional[UUID] = None,
        predicate: ConflictPredicate = DateRange.overlaps,
    ) -> List[Booking]:
        """Bookings still holding the room that collide with ``stay``"""
        bookings = await self.booking_repo.find_by_room(
            room.room_id, exclude_statuses=RELEASED_STATUSES
        )
        return [
            b for b in bookings
            if b.booking_id != exclude_booking_id and predicate(stay, b.date_range)
        ]

    async def is_available(
        self,
        room_id: int,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[UUID] = None,
    ) -> bool:
        """Interval check; rooms under maintenance are never available"""
        stay = _stay(check_in, check_out)
        room = await self.load_room(room_id)
        if room.is_blocked():
            return False
        conflicts = await self.find_conflicts(room, stay, exclude_booking_id)
        return not conflicts

    async def check_room_availability(self, room_id: int, check_in: date, check_out: date) -> bool:
        """Availability as reported by the public check endpoint.

        With strict room status on, the room's own status flag must also be
        ``available``.
        """
        available = await self.is_available(room_id, check_in, check_out)
        if not available or not self.strict_room_status:
            return available
        room = await self.load_room(room_id)
        return room.status == RoomStatus.AVAILABLE


class BookingService:
    """Booking factory and lifecycle use cases"""

    MAX_NUMBER_ATTEMPTS = 5

    def __init__(self,
                 booking_repo: BookingRepository,
                 room_repo: RoomRepository,
                 user_repo: UserRepository,
                 availability: AvailabilityService,
                 locks: LockRegistry,
                 dispatcher: NotificationDispatcher,
                 security: SecurityService,
                 today: Clock = date.today,
                 guest_locks: Optional[LockRegistry] = None):
        self.booking_repo = booking_repo
        self.room_repo = room_repo
        self.user_repo = user_repo
        self.availability = availability
        self.locks = locks
        self.guest_locks = guest_locks or LockRegistry(locks.timeout_seconds, resource="guest")
        self.dispatcher = dispatcher
        self.security = security
        self.today = today

    # ==================== CREATION ====================
    async def create_booking(
        self,
        user_id: UUID,
        room_id: int,
        check_in: date,
        check_out: date,
        guest_count: int,
        special_requests: Optional[str] = None,
        acting_staff_id: Optional[UUID] = None,
    ) -> Booking:
        """Guest booking, created ``pending`` (``confirmed`` when staff-entered)"""
        guest = await self.user_repo.find_by_id(user_id)
        if guest is None:
            raise UserNotFound(user_id)

        async def existing_guest() -> Tuple[UserInDB, bool]:
            return guest, False

        return await self._book(
            room_id, check_in, check_out, guest_count, special_requests,
            created_by=acting_staff_id,
            resolve_guest=existing_guest,
        )

    async def create_walk_in_booking(
        self,
        actor: User,
        room_id: int,
        check_in: date,
        check_out: date,
        guest_count: int,
        guest_email: Optional[str],
        guest_name: Optional[str] = None,
        guest_phone: Optional[str] = None,
        special_requests: Optional[str] = None,
    ) -> Booking:
        """Front desk booking for a guest at the counter, created ``confirmed``"""
        _require_staff(actor)
        if not guest_email:
            raise ValidationError("Guest email is required")

        async def walk_in_guest() -> Tuple[UserInDB, bool]:
            return await self._find_or_build_guest(guest_email, guest_name, guest_phone)

        # Guest lock before room lock; lookup and account save share one critical section
        async with self.guest_locks.hold(guest_email.lower()):
            return await self._book(
                room_id, check_in, check_out, guest_count, special_requests,
                created_by=actor.user_id,
                resolve_guest=walk_in_guest,
                predicate=DateRange.conflicts_with,
            )

    async def _book(
        self,
        room_id: int,
        check_in: date,
        check_out: date,
        guest_count: int,
        special_requests: Optional[str],
        created_by: Optional[UUID],
        resolve_guest: Callable[[], Awaitable[Tuple[UserInDB, bool]]],
        predicate: ConflictPredicate = DateRange.overlaps,
    ) -> Booking:
        if check_in < self.today():
            raise ValidationError("Check-in date cannot be in the past")
        stay = _stay(check_in, check_out)

        room = await self.availability.load_room(room_id)
        if guest_count > room.capacity:
            raise ValidationError(
                f"Room capacity exceeded. Maximum capacity is {room.capacity} guests"
            )

        async with self.locks.hold(room_id):
            # Re-read under the lock; the room may have changed while waiting
            room = await self.availability.load_room(room_id)
            original_room = room.model_copy(deep=True)
            if room.is_blocked():
                raise ConflictError("Room is under maintenance and cannot be booked")
            conflicts = await self.availability.find_conflicts(room, stay, predicate=predicate)
            if conflicts:
                taken = ", ".join(str(b.date_range) for b in conflicts)
                raise ConflictError(
                    f"Room is not available for the selected dates (booked {taken})",
                    details={"room_id": room_id, "conflicts": [b.booking_number for b in conflicts]},
                )

            guest, is_new_guest = await resolve_guest()
            booking = Booking.create(
                user_id=guest.user_id,
                room=room,
                date_range=stay,
                guest_count=guest_count,
                special_requests=special_requests,
                created_by=created_by,
                booking_number=await self._unique_booking_number(),
            )
            room.set_status(RoomStatus.BOOKED if created_by else RoomStatus.PENDING)

            await _run_to_completion(self._commit_new_booking(
                booking, room, original_room, guest if is_new_guest else None
            ))

        logger.info(
            "Booking %s created for room %s (%s, %s nights, status %s)",
            booking.booking_number, room.room_number, stay, booking.nights, booking.status.value,
        )
        if guest.email:
            self.dispatcher.booking_confirmed(guest.email, self._summary(booking, room))
        return booking

    async def _commit_new_booking(
        self,
        booking: Booking,
        room: Room,
        original_room: Room,
        new_guest: Optional[UserInDB],
    ) -> None:
        try:
            await self._save_with_fresh_number(booking)
            await self.room_repo.update(room)
            if new_guest is not None:
                await self.user_repo.save(new_guest)
        except Exception as exc:
            logger.exception("Failed to persist booking %s, rolling back", booking.booking_number)
            await self._undo_new_booking(booking, original_room)
            raise InternalError("Failed to create booking") from exc

    async def _save_with_fresh_number(self, booking: Booking) -> None:
        """Save, drawing a new number when another room's booking took it first"""
        for _ in range(self.MAX_NUMBER_ATTEMPTS):
            try:
                await self.booking_repo.save(booking)
                return
            except DuplicateKeyError:
                logger.warning("Booking number %s already taken, drawing another", booking.booking_number)
                booking.booking_number = await self._unique_booking_number()
        raise InternalError("Could not allocate a booking number")

    async def _undo_new_booking(self, booking: Booking, original_room: Room) -> None:
        try:
            await self.booking_repo.delete(booking.booking_id)
            await self.room_repo.update(original_room)
        except Exception:
            logger.exception("Rollback of booking %s failed", booking.booking_number)

    async def _find_or_build_guest(
        self,
        email: str,
        name: Optional[str],
        phone: Optional[str],
    ) -> Tuple[UserInDB, bool]:
        user = await self.user_repo.find_by_email(email)
        if user is not None:
            return user, False
        placeholder = self.security.generate_placeholder_password()
        user = UserInDB(
            username=email,
            email=email,
            full_name=name,
            phone=phone,
            role=Role.CUSTOMER,
            hashed_password=self.security.get_password_hash(placeholder),
        )
        logger.info("Provisioning guest account for walk-in %s", email)
        return user, True

    async def _unique_booking_number(self) -> str:
        for _ in range(self.MAX_NUMBER_ATTEMPTS):
            number = Booking.generate_booking_number()
            if await self.booking_repo.find_by_number(number) is None:
                return number
        raise InternalError("Could not allocate a booking number")

    @staticmethod
    def _summary(booking: Booking, room: Room) -> BookingSummary:
        return BookingSummary(
            booking_number=booking.booking_number,
            room_number=room.room_number,
            check_in_date=booking.check_in_date,
            check_out_date=booking.check_out_date,
            nights=booking.nights,
            total_amount=booking.total_amount,
            status=booking.status.value,
        )

    # ==================== LIFECYCLE ====================
    async def set_status(self, booking_id: UUID, new_status, actor: User) -> Booking:
        """Staff status change, with the paired room status side effect"""
        _require_staff(actor)
        status = parse_status(new_status)
        booking = await self._load_booking(booking_id)

        async with self.locks.hold(booking.room_id):
            booking = await self._load_booking(booking_id)
            original = booking.model_copy(deep=True)
            room_effect = booking.transition_to(status)
            await _run_to_completion(self._commit_transition(booking, original, room_effect))

        logger.info(
            "Booking %s moved %s -> %s by %s",
            booking.booking_number, original.status.value, status.value, actor.username,
        )
        return booking

    async def cancel_booking(self, booking_id: UUID, actor: User) -> Booking:
        """Owner cancellation; recorded as checked_out. Staff use ``set_status``"""
        booking = await self._load_booking(booking_id)
        if not booking.is_owned_by(actor.user_id):
            raise UnauthorizedError("Not authorized to cancel this booking")

        async with self.locks.hold(booking.room_id):
            booking = await self._load_booking(booking_id)
            original = booking.model_copy(deep=True)
            room_effect = booking.cancel()
            await _run_to_completion(self._commit_transition(booking, original, room_effect))

        logger.info("Booking %s cancelled by %s", booking.booking_number, actor.username)
        return booking

    async def _commit_transition(
        self,
        booking: Booking,
        original: Booking,
        room_effect: Optional[RoomStatus],
    ) -> None:
        room = None
        if room_effect is not None:
            room = await self.room_repo.find_by_id(booking.room_id)
            if room is None:
                logger.warning("Room %s missing while updating booking %s", booking.room_id, booking.booking_number)
            else:
                room.set_status(room_effect)

        try:
            await self.booking_repo.update(booking)
            if room is not None:
                await self.room_repo.update(room)
        except Exception as exc:
            logger.exception("Failed to update booking %s, rolling back", booking.booking_number)
            try:
                await self.booking_repo.update(original)
            except Exception:
                logger.exception("Rollback of booking %s failed", booking.booking_number)
            raise InternalError("Failed to update booking status") from exc

    # ==================== QUERIES ====================
    async def _load_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repo.find_by_id(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking

    async def get_booking(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self._load_booking(booking_id)
        self._require_visible(booking, actor)
        return booking

    async def get_booking_by_number(self, booking_number: str, actor: User) -> Booking:
        booking = await self.booking_repo.find_by_number(booking_number)
        if booking is None:
            raise BookingNotFound(booking_number)
        self._require_visible(booking, actor)
        return booking

    async def get_all_bookings(self, actor: User) -> List[Booking]:
        _require_staff(actor)
        return await self.booking_repo.find_all()

    async def get_user_bookings(self, actor: User) -> List[Booking]:
        return await self.booking_repo.find_by_user_id(actor.user_id)

    @staticmethod
    def _require_visible(booking: Booking, actor: User) -> None:
        if not actor.is_staff() and not booking.is_owned_by(actor.user_id):
            raise UnauthorizedError("Not authorized to view this booking")


class RoomService:
    """Room administration (manager only for writes)"""

    def __init__(self,
                 room_repo: RoomRepository,
                 booking_repo: BookingRepository,
                 locks: LockRegistry,
                 default_property_id: str):
        self.room_repo = room_repo
        self.booking_repo = booking_repo
        self.locks = locks
        self.default_property_id = default_property_id

    async def create_room(
        self,
        actor: User,
        room_number: str,
        room_type: RoomType,
        price: Decimal,
        capacity: int = 1,
        air_conditioned: bool = False,
        description: Optional[str] = None,
        amenities: Optional[List[str]] = None,
        property_id: Optional[str] = None,
    ) -> Room:
        _require_role(actor, Role.MANAGER)
        if await self.room_repo.find_by_number(room_number) is not None:
            raise ValidationError("Room number already exists")

        room = Room(
            room_id=await self.room_repo.next_id(),
            room_number=room_number,
            room_type=room_type,
            price=price,
            capacity=capacity,
            air_conditioned=air_conditioned,
            description=description,
            amenities=amenities or [],
            property_id=property_id or self.default_property_id,
        )
        await self.room_repo.save(room)
        logger.info("Room %s created (id %s)", room.room_number, room.room_id)
        return room

    async def get_room(self, room_id: int) -> Room:
        room = await self.room_repo.find_by_id(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    async def search_by_number(self, room_number: str) -> Room:
        room = await self.room_repo.find_by_number(room_number)
        if room is None:
            raise RoomNotFound(room_number)
        return room

    async def list_rooms(
        self,
        status: Optional[RoomStatus] = None,
        room_type: Optional[RoomType] = None,
    ) -> List[Room]:
        return await self.room_repo.find_all(status=status, room_type=room_type)

    async def update_room(self, actor: User, room_id: int, **changes) -> Room:
        """Apply the non-None fields of ``changes``"""
        _require_role(actor, Role.MANAGER)
        async with self.locks.hold(room_id):
            room = await self.get_room(room_id)
            data = room.model_dump()
            data.update({k: v for k, v in changes.items() if v is not None})
            data["modified_at"] = datetime.utcnow()
            updated = Room(**data)
            await self.room_repo.update(updated)
        return updated

    async def delete_room(self, actor: User, room_id: int) -> None:
        _require_role(actor, Role.MANAGER)
        async with self.locks.hold(room_id):
            room = await self.get_room(room_id)
            active = await self.booking_repo.find_by_room(room_id, exclude_statuses=RELEASED_STATUSES)
            if active:
                raise ConflictError(
                    f"Room {room.room_number} has {len(active)} active booking(s) and cannot be deleted"
                )
            await self.room_repo.delete(room_id)
        logger.info("Room %s deleted", room.room_number)


class OccupancyService:
    """Occupancy reporting over a property's rooms"""

    def __init__(self,
                 room_repo: RoomRepository,
                 booking_repo: BookingRepository,
                 default_window_days: int = 30,
                 today: Clock = date.today,
                 max_report_days: int = 366):
        self.room_repo = room_repo
        self.booking_repo = booking_repo
        self.default_window_days = default_window_days
        self.max_report_days = max_report_days
        self.today = today

    def _report_window(self, start_date: Optional[date], end_date: Optional[date]) -> Tuple[date, date]:
        start = start_date or self.today()
        end = end_date
        if end is None:
            try:
                end = start + timedelta(days=self.default_window_days)
            except OverflowError:
                raise ValidationError(
                    "Report window runs past the last supported date",
                    details={"start_date": start.isoformat()},
                ) from None
        if end < start:
            raise ValidationError("Report end date must not be before start date")
        if (end - start).days + 1 > self.max_report_days:
            raise ValidationError(
                f"Report window cannot exceed {self.max_report_days} days",
                details={"start_date": start.isoformat(), "end_date": end.isoformat()},
            )
        return start, end

    async def occupancy_report(
        self,
        actor: User,
        property_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> OccupancyReport:
        _require_role(actor, Role.MANAGER)
        start, end = self._report_window(start_date, end_date)

        rooms = await self.room_repo.find_all(property_id=property_id)
        bookings = await self.booking_repo.find_by_rooms([r.room_id for r in rooms])
        return build_occupancy_report(property_id, len(rooms), bookings, start, end)
