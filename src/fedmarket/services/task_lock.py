"""Per-task exclusive section so only one round sequence mutates a task at a time."""

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from os import urandom

import structlog
from redis.asyncio import Redis

from fedmarket.config import settings
from fedmarket.errors import SimulationInProgressError

logger = structlog.get_logger()

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class TaskLock:
    def __init__(self, redis: Redis | None = None, ttl_seconds: int | None = None) -> None:
        self.redis = redis
        self.ttl_seconds = ttl_seconds or settings.task_lock_ttl_seconds
        self._local: dict[str, asyncio.Lock] = {}
        self._release_script = redis.register_script(_RELEASE_SCRIPT) if redis is not None else None

    @staticmethod
    def key(task_id: uuid.UUID | str) -> str:
        return f"task:{task_id}:simulation"

    @asynccontextmanager
    async def hold(self, task_id: uuid.UUID | str) -> AsyncIterator[None]:
        key = self.key(task_id)
        if self.redis is None:
            async with self._hold_local(key):
                yield
            return

        token = urandom(8).hex()
        acquired = await self.redis.set(key, token, nx=True, ex=self.ttl_seconds)
        if not acquired:
            logger.warning("task_lock_busy", task_id=str(task_id))
            raise SimulationInProgressError("A simulation is already running for this task")
        try:
            yield
        finally:
            await self._release(key, token)

    @asynccontextmanager
    async def _hold_local(self, key: str) -> AsyncIterator[None]:
        lock = self._local.setdefault(key, asyncio.Lock())
        if lock.locked():
            logger.warning("task_lock_busy", key=key)
            raise SimulationInProgressError("A simulation is already running for this task")
        try:
            async with lock:
                yield
        finally:
            if not lock.locked():
                self._local.pop(key, None)

    async def _release(self, key: str, token: str) -> None:
        released = await self._release_script(keys=[key], args=[token])
        if not released:
            # the TTL expired and another caller holds the key now
            logger.warning("task_lock_expired_before_release", key=key)
