"""Notification port for booking confirmations"""
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from pydantic import BaseModel


class BookingSummary(BaseModel):
    """What the guest is told about a freshly created booking"""
    booking_number: str
    room_number: str
    check_in_date: date
    check_out_date: date
    nights: int
    total_amount: Decimal
    status: str


class BookingNotifier(ABC):
    """Delivers booking confirmations; delivery itself lives outside the core"""

    @abstractmethod
    async def send_booking_confirmation(self, guest_email: str, summary: BookingSummary) -> None:
        """Send confirmation; raise on delivery failure"""
        pass
