"""Per-slot booking locks in Redis.

Key format: lock:booking:{organizer_id}:{slot_start_epoch_ms}
Acquire is a single SET NX PX; it never waits. The TTL only bounds how long
a crashed holder can block a slot; revalidation under the lock is what
prevents double booking.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

import redis.asyncio as aioredis

from app.core.errors import ConflictError

logger = logging.getLogger(__name__)

LOCK_PREFIX = "lock:booking"
LOCK_VALUE = "locked"


def epoch_ms(dt: datetime) -> int:
    return round(dt.timestamp() * 1000)


class BookingLockManager:
    def __init__(self, redis: aioredis.Redis, ttl_ms: int):
        self.redis = redis
        self.ttl_ms = ttl_ms

    def _key(self, organizer_id: int, slot_start_ms: int) -> str:
        return f"{LOCK_PREFIX}:{organizer_id}:{slot_start_ms}"

    async def try_acquire(self, organizer_id: int, slot_start_ms: int) -> bool:
        key = self._key(organizer_id, slot_start_ms)
        acquired = await self.redis.set(key, LOCK_VALUE, nx=True, px=self.ttl_ms)
        if not acquired:
            logger.info("Lock busy: %s", key)
        return bool(acquired)

    async def release(self, organizer_id: int, slot_start_ms: int) -> None:
        await self.redis.delete(self._key(organizer_id, slot_start_ms))

    @asynccontextmanager
    async def hold(self, organizer_id: int, slot_start: datetime) -> AsyncIterator[None]:
        """Hold the slot lock for the body; raise ConflictError if it is taken.

        The lock is released on every exit path, exceptions included.
        """
        slot_start_ms = epoch_ms(slot_start)
        if not await self.try_acquire(organizer_id, slot_start_ms):
            raise ConflictError(
                "This time slot is currently being booked by another user. Please try again."
            )
        try:
            yield
        finally:
            await self.release(organizer_id, slot_start_ms)
