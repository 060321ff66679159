"""
Cycle lock - guarantees at most one trade cycle runs at a time.

Redis SET NX EX under a single key, shared by the cron job and the HTTP
trigger. The TTL bounds how long a crashed holder can block the next
cycle.
"""

import logging
import uuid
from typing import Optional

from redis.asyncio import Redis

from ..core.config import get_settings
from ..core.errors import CycleInProgressError

logger = logging.getLogger(__name__)

CYCLE_LOCK_KEY = "arena:lock:trade_cycle"


class CycleLock:
    """
    Usage::

        async with CycleLock(redis):
            await orchestrator.run_cycle()
    """

    def __init__(
        self,
        redis: Redis,
        ttl_seconds: Optional[int] = None,
        owner: Optional[str] = None,
    ):
        self.redis = redis
        self.ttl_seconds = ttl_seconds or get_settings().cycle_lock_ttl_seconds
        self.owner = owner or uuid.uuid4().hex
        self._held = False

    async def acquire(self) -> bool:
        acquired = await self.redis.set(
            CYCLE_LOCK_KEY, self.owner, nx=True, ex=self.ttl_seconds
        )
        self._held = bool(acquired)
        return self._held

    async def release(self) -> None:
        """Delete the key if this instance still owns it."""
        if not self._held:
            return
        self._held = False
        try:
            current = await self.redis.get(CYCLE_LOCK_KEY)
            if isinstance(current, bytes):
                current = current.decode()
            if current == self.owner:
                await self.redis.delete(CYCLE_LOCK_KEY)
        except Exception as e:
            # The TTL clears the key eventually
            logger.warning(f"Failed to release cycle lock: {e}")

    async def current_holder(self) -> Optional[str]:
        holder = await self.redis.get(CYCLE_LOCK_KEY)
        if isinstance(holder, bytes):
            holder = holder.decode()
        return holder

    async def __aenter__(self) -> "CycleLock":
        if not await self.acquire():
            raise CycleInProgressError(await self.current_holder())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()
