"""Notification adapter

Email delivery is an external service; this adapter only records the
hand-off. Swap it for a real gateway client in deployment.
"""
import logging

from domain.notifications import BookingNotifier, BookingSummary

logger = logging.getLogger(__name__)


class LoggingBookingNotifier(BookingNotifier):
    async def send_booking_confirmation(self, guest_email: str, summary: BookingSummary) -> None:
        logger.info(
            "Booking confirmation %s queued for %s (room %s, %s to %s)",
            summary.booking_number,
            guest_email,
            summary.room_number,
            summary.check_in_date,
            summary.check_out_date,
        )
