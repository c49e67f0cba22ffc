"""Domain layer tests: intervals, lifecycle table, occupancy aggregation"""
import itertools
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from domain.entities import Booking, Room, ROOM_STATUS_EFFECTS, parse_status
from domain.enums import BookingStatus, Role, RoomStatus, RoomType
from domain.errors import InvalidStatus, InvalidTransition, ValidationError
from domain.occupancy import build_occupancy_report, percentage
from domain.value_objects import DateRange, days_between


def stay(start, end):
    return DateRange(check_in=date.fromisoformat(start), check_out=date.fromisoformat(end))


def make_room(price="100.00", capacity=2, status=RoomStatus.AVAILABLE):
    return Room(
        room_id=1,
        room_number="101",
        room_type=RoomType.STANDARD,
        price=Decimal(price),
        capacity=capacity,
        property_id="MAIN",
        status=status,
    )


def make_booking(start, end, status=BookingStatus.CONFIRMED, room_id=1):
    booking = Booking.create(user_id=uuid4(), room=make_room(), date_range=stay(start, end), guest_count=1)
    booking.room_id = room_id
    booking.status = status
    return booking


# ============================================================================
# INTERVAL MODEL
# ============================================================================

class TestDateRange:

    @pytest.mark.unit
    @pytest.mark.domain
    def test_nights(self):
        assert stay("2024-06-01", "2024-06-05").nights() == 4

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.edge_case
    def test_same_day_rejected(self):
        with pytest.raises(ValueError, match="Check-out date must be after check-in date"):
            stay("2024-06-01", "2024-06-01")

    @pytest.mark.unit
    @pytest.mark.domain
    def test_inverted_rejected(self):
        with pytest.raises(ValueError):
            stay("2024-06-05", "2024-06-01")

    @pytest.mark.unit
    @pytest.mark.domain
    def test_overlap(self):
        assert stay("2024-06-01", "2024-06-05").overlaps(stay("2024-06-03", "2024-06-06"))
        assert stay("2024-06-03", "2024-06-06").overlaps(stay("2024-06-01", "2024-06-05"))

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.edge_case
    def test_back_to_back_stays_do_not_overlap(self):
        first = stay("2024-06-01", "2024-06-05")
        second = stay("2024-06-05", "2024-06-07")
        assert not first.overlaps(second)
        assert not second.overlaps(first)
        assert not second.conflicts_with(first)

    @pytest.mark.unit
    @pytest.mark.domain
    def test_contained_stay_overlaps(self):
        assert stay("2024-06-02", "2024-06-03").overlaps(stay("2024-06-01", "2024-06-10"))
        assert stay("2024-06-01", "2024-06-10").conflicts_with(stay("2024-06-02", "2024-06-03"))

    @pytest.mark.unit
    @pytest.mark.domain
    def test_three_case_predicate_matches_half_open_overlap(self):
        """Exhaustive over every valid pair of ranges inside a 7-day grid"""
        base = date(2024, 6, 1)
        days = [base + timedelta(days=i) for i in range(7)]
        ranges = [
            DateRange(check_in=a, check_out=b)
            for a, b in itertools.combinations(days, 2)
        ]
        for new, existing in itertools.product(ranges, repeat=2):
            assert new.conflicts_with(existing) == new.overlaps(existing), (new, existing)

    @pytest.mark.unit
    @pytest.mark.domain
    def test_frozen(self):
        with pytest.raises(Exception):
            stay("2024-06-01", "2024-06-05").check_in = date(2024, 6, 2)


class TestDaysBetween:

    @pytest.mark.unit
    @pytest.mark.domain
    def test_inclusive_both_ends(self):
        assert days_between(date(2024, 6, 1), date(2024, 6, 3)) == [
            date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3),
        ]

    @pytest.mark.unit
    @pytest.mark.domain
    def test_single_day(self):
        assert days_between(date(2024, 6, 1), date(2024, 6, 1)) == [date(2024, 6, 1)]

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.edge_case
    def test_empty_when_end_before_start(self):
        assert days_between(date(2024, 6, 2), date(2024, 6, 1)) == []

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.edge_case
    def test_window_ending_on_last_representable_date(self):
        assert days_between(date(9999, 12, 30), date.max) == [date(9999, 12, 30), date.max]

    @pytest.mark.unit
    @pytest.mark.domain
    def test_datetimes_truncated_to_midnight(self):
        result = days_between(datetime(2024, 6, 1, 18, 30), datetime(2024, 6, 2, 1, 0))
        assert result == [date(2024, 6, 1), date(2024, 6, 2)]


# ============================================================================
# BOOKING ENTITY
# ============================================================================

class TestBookingEntity:

    @pytest.mark.unit
    @pytest.mark.domain
    def test_create_snapshots_price(self):
        room = make_room(price="100.00")
        booking = Booking.create(uuid4(), room, stay("2024-06-05", "2024-06-07"), guest_count=2)
        room.price = Decimal("999.00")

        assert booking.nights == 2
        assert booking.total_amount == Decimal("200.00")
        assert booking.status == BookingStatus.PENDING
        assert booking.booking_number.startswith("BK")
        assert len(booking.booking_number) == 12

    @pytest.mark.unit
    @pytest.mark.domain
    def test_stored_amounts_recompute_identically(self):
        room = make_room(price="87.50")
        booking = Booking.create(uuid4(), room, stay("2024-06-01", "2024-06-04"), guest_count=1)
        assert booking.nights == booking.date_range.nights()
        assert booking.total_amount == booking.nights * room.price

    @pytest.mark.unit
    @pytest.mark.domain
    def test_staff_created_booking_starts_confirmed(self):
        booking = Booking.create(
            uuid4(), make_room(), stay("2024-06-01", "2024-06-02"), guest_count=1, created_by=uuid4()
        )
        assert booking.status == BookingStatus.CONFIRMED

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.edge_case
    def test_capacity_exceeded(self):
        with pytest.raises(ValidationError, match="Maximum capacity is 2"):
            Booking.create(uuid4(), make_room(capacity=2), stay("2024-06-01", "2024-06-02"), guest_count=5)

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.parametrize("status,effect", [
        ("checked_out", RoomStatus.AVAILABLE),
        ("cancelled", RoomStatus.AVAILABLE),
        ("confirmed", RoomStatus.BOOKED),
        ("checked_in", RoomStatus.BOOKED),
        ("pending", None),
        ("cancelPending", None),
    ])
    def test_transition_room_effects(self, status, effect):
        booking = make_booking("2024-06-01", "2024-06-03", status=BookingStatus.PENDING)
        assert booking.transition_to(status) == effect
        assert booking.status == BookingStatus(status)
        assert booking.version == 2

    @pytest.mark.unit
    @pytest.mark.domain
    def test_every_status_value_is_recognised(self):
        assert {s.value for s in BookingStatus} == {
            "pending", "confirmed", "checked_in", "checked_out", "cancelPending", "cancelled",
        }
        assert set(ROOM_STATUS_EFFECTS) <= set(BookingStatus)

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.edge_case
    def test_unknown_status_rejected(self):
        booking = make_booking("2024-06-01", "2024-06-03")
        with pytest.raises(InvalidStatus):
            booking.transition_to("archived")
        with pytest.raises(InvalidStatus):
            parse_status("CONFIRMED")

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.parametrize("terminal", [BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED])
    def test_terminal_statuses_are_final(self, terminal):
        booking = make_booking("2024-06-01", "2024-06-03", status=terminal)
        with pytest.raises(InvalidTransition):
            booking.transition_to(BookingStatus.CONFIRMED)
        assert not booking.holds_room()

    @pytest.mark.unit
    @pytest.mark.domain
    def test_checked_in_only_moves_to_checked_out(self):
        booking = make_booking("2024-06-01", "2024-06-03", status=BookingStatus.CHECKED_IN)
        with pytest.raises(InvalidTransition):
            booking.transition_to(BookingStatus.CANCELLED)
        assert booking.transition_to(BookingStatus.CHECKED_OUT) == RoomStatus.AVAILABLE

    @pytest.mark.unit
    @pytest.mark.domain
    def test_cancel_records_checked_out(self):
        booking = make_booking("2024-06-01", "2024-06-03", status=BookingStatus.PENDING)
        assert booking.cancel() == RoomStatus.AVAILABLE
        assert booking.status == BookingStatus.CHECKED_OUT

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.edge_case
    def test_cancel_after_check_in_rejected(self):
        booking = make_booking("2024-06-01", "2024-06-03", status=BookingStatus.CHECKED_IN)
        with pytest.raises(InvalidTransition, match="Cannot cancel"):
            booking.cancel()


class TestRoles:

    @pytest.mark.unit
    @pytest.mark.domain
    def test_staff_roles(self):
        assert Role.MANAGER.is_staff()
        assert Role.FRONT_DESK.is_staff()
        assert not Role.CUSTOMER.is_staff()


# ============================================================================
# OCCUPANCY AGGREGATION
# ============================================================================

class TestOccupancyReport:

    @pytest.mark.unit
    @pytest.mark.domain
    def test_one_of_three_rooms_booked_over_window(self):
        bookings = [make_booking("2024-06-01", "2024-06-03")]
        report = build_occupancy_report("MAIN", 3, bookings, date(2024, 6, 1), date(2024, 6, 2))

        assert report.total_days == 2
        assert report.summary.total_nights_booked == 2
        assert report.summary.average_occupancy_rate == Decimal("33.33")
        assert [d.booked_rooms for d in report.daily_occupancy] == [1, 1]
        assert [d.available_rooms for d in report.daily_occupancy] == [2, 2]
        assert report.daily_occupancy[0].occupancy_rate == Decimal("33.33")

    @pytest.mark.unit
    @pytest.mark.domain
    def test_booking_clipped_to_window(self):
        bookings = [make_booking("2024-05-25", "2024-06-20")]
        report = build_occupancy_report("MAIN", 1, bookings, date(2024, 6, 1), date(2024, 6, 3))
        assert report.summary.total_nights_booked == 3
        assert report.summary.average_occupancy_rate == Decimal("100.00")

    @pytest.mark.unit
    @pytest.mark.domain
    def test_check_out_day_counted_in_inclusive_report(self):
        bookings = [make_booking("2024-06-01", "2024-06-02")]
        report = build_occupancy_report("MAIN", 2, bookings, date(2024, 6, 1), date(2024, 6, 3))
        assert [d.booked_rooms for d in report.daily_occupancy] == [1, 1, 0]

    @pytest.mark.unit
    @pytest.mark.domain
    def test_cancelled_bookings_ignored_checked_out_counted(self):
        bookings = [
            make_booking("2024-06-01", "2024-06-02", status=BookingStatus.CANCELLED),
            make_booking("2024-06-01", "2024-06-02", status=BookingStatus.CHECKED_OUT, room_id=2),
        ]
        report = build_occupancy_report("MAIN", 2, bookings, date(2024, 6, 1), date(2024, 6, 1))
        assert report.daily_occupancy[0].booked_rooms == 1

    @pytest.mark.unit
    @pytest.mark.domain
    def test_bookings_outside_window_ignored(self):
        bookings = [make_booking("2024-07-01", "2024-07-03")]
        report = build_occupancy_report("MAIN", 2, bookings, date(2024, 6, 1), date(2024, 6, 5))
        assert report.summary.total_nights_booked == 0

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.edge_case
    def test_no_rooms_reports_zero_without_dividing(self):
        report = build_occupancy_report("EMPTY", 0, [], date(2024, 6, 1), date(2024, 6, 2))
        assert report.has_data is False
        assert report.summary.average_occupancy_rate == Decimal("0.00")
        assert all(d.occupancy_rate == Decimal("0.00") for d in report.daily_occupancy)

    @pytest.mark.unit
    @pytest.mark.domain
    @pytest.mark.edge_case
    def test_inverted_window_rejected(self):
        with pytest.raises(ValidationError):
            build_occupancy_report("MAIN", 1, [], date(2024, 6, 2), date(2024, 6, 1))

    @pytest.mark.unit
    @pytest.mark.domain
    def test_percentage_rounding(self):
        assert percentage(2, 3) == Decimal("66.67")
        assert percentage(1, 0) == Decimal("0.00")
