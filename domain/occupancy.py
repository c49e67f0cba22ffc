"""Occupancy aggregation

Replays booking ranges into a per-day histogram of booked rooms. Report
windows are inclusive on both ends and a booking counts on every day from
its check-in through its check-out, clipped to the window.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List

from pydantic import BaseModel

from domain.entities import Booking
from domain.enums import BookingStatus
from domain.errors import ValidationError
from domain.value_objects import days_between

_CENTS = Decimal("0.01")


class DailyOccupancy(BaseModel):
    date: date
    booked_rooms: int
    available_rooms: int
    occupancy_rate: Decimal


class OccupancySummary(BaseModel):
    total_nights_booked: int
    average_occupancy_rate: Decimal


class OccupancyReport(BaseModel):
    property_id: str
    total_rooms: int
    start_date: date
    end_date: date
    total_days: int
    has_data: bool
    summary: OccupancySummary
    daily_occupancy: List[DailyOccupancy]


def percentage(part: int, whole: int) -> Decimal:
    """part / whole as a percentage with 2 decimals; 0 when whole is 0"""
    if whole <= 0:
        return Decimal("0.00")
    return (Decimal(part) * 100 / Decimal(whole)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def counts_towards_occupancy(booking: Booking, start: date, end: date) -> bool:
    if booking.status == BookingStatus.CANCELLED:
        return False
    return booking.check_in_date <= end and booking.check_out_date >= start


def build_occupancy_report(
    property_id: str,
    total_rooms: int,
    bookings: Iterable[Booking],
    start: date,
    end: date,
) -> OccupancyReport:
    if end < start:
        raise ValidationError("Report end date must not be before start date")

    window = days_between(start, end)
    booked: Dict[date, int] = {day: 0 for day in window}
    total_nights = 0

    for booking in bookings:
        if not counts_towards_occupancy(booking, start, end):
            continue
        first, last = booking.date_range.clip(start, end)
        for day in days_between(first, last):
            booked[day] += 1
            total_nights += 1

    daily = [
        DailyOccupancy(
            date=day,
            booked_rooms=count,
            available_rooms=total_rooms - count,
            occupancy_rate=percentage(count, total_rooms),
        )
        for day, count in booked.items()
    ]

    return OccupancyReport(
        property_id=property_id,
        total_rooms=total_rooms,
        start_date=start,
        end_date=end,
        total_days=len(window),
        has_data=total_rooms > 0,
        summary=OccupancySummary(
            total_nights_booked=total_nights,
            average_occupancy_rate=percentage(total_nights, total_rooms * len(window)),
        ),
        daily_occupancy=daily,
    )
