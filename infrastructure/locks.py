"""Keyed mutual exclusion for booking writes"""
import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable

from domain.errors import InternalError

logger = logging.getLogger(__name__)


class LockRegistry:
    """One asyncio.Lock per key, acquired with a bounded wait.

    Rooms are keyed by id, so "check availability + write booking + update
    room" never interleaves with another writer for the same room. Walk-in
    guests are keyed by lowercased email, so one address provisions one
    account.
    """

    def __init__(self, timeout_seconds: float, resource: str = "room"):
        self.timeout_seconds = timeout_seconds
        self.resource = resource
        self._locks: Dict[Hashable, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks[key]
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                "Timed out after %ss waiting for %s %s lock", self.timeout_seconds, self.resource, key
            )
            raise InternalError(f"{self.resource.capitalize()} is busy, please retry the request") from None
        try:
            yield
        finally:
            lock.release()
