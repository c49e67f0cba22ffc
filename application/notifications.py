"""Fire-and-forget dispatch of post-commit notifications"""
import asyncio
import logging
from typing import Set

from domain.notifications import BookingNotifier, BookingSummary

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Runs notifier calls as background tasks.

    A failed delivery is logged and dropped; it never reaches the caller that
    committed the booking.
    """

    def __init__(self, notifier: BookingNotifier):
        self.notifier = notifier
        self._pending: Set[asyncio.Task] = set()

    def booking_confirmed(self, guest_email: str, summary: BookingSummary) -> None:
        task = asyncio.create_task(self._deliver(guest_email, summary))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, guest_email: str, summary: BookingSummary) -> None:
        try:
            await self.notifier.send_booking_confirmation(guest_email, summary)
        except Exception:
            logger.exception(
                "Failed to send confirmation for booking %s to %s",
                summary.booking_number,
                guest_email,
            )

    async def drain(self) -> None:
        """Wait for in-flight deliveries (used on shutdown and in tests)"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
