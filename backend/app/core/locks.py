"""
Keyed async locks.

Used to serialize work per key (e.g. first-login bootstrap per identity).
Two backends: in-process asyncio locks for a single instance, and Redis
locks shared by every API instance.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import AsyncIterator, Protocol

import redis.asyncio as aioredis
from redis.exceptions import LockError

from app.core.config import settings

logger = logging.getLogger(__name__)


class KeyedLock(Protocol):
    def hold(self, key: str) -> AbstractAsyncContextManager[None]: ...


class LocalKeyedLock:
    """
    One asyncio.Lock per key, created on demand.

    An entry is dropped as soon as no task holds or waits on it, so the map
    only ever contains keys that are in use.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] = self._refs.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]


class RedisKeyedLock:
    """
    Distributed lock per key on top of redis-py's Lock.

    If the lock cannot be acquired within ``timeout`` the caller proceeds
    anyway; database unique constraints still reject a duplicate write.
    """

    def __init__(self, redis: aioredis.Redis, timeout: float, prefix: str = "lock:") -> None:
        self.redis = redis
        self.timeout = timeout
        self.prefix = prefix

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self.redis.lock(
            f"{self.prefix}{key}",
            timeout=self.timeout,
            blocking_timeout=self.timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            logger.warning("Timed out waiting for lock %s, continuing unlocked", key)
        try:
            yield
        finally:
            if acquired:
                try:
                    await lock.release()
                except LockError:
                    logger.warning("Lock %s expired before release", key)


def build_keyed_lock(redis: aioredis.Redis | None = None) -> LocalKeyedLock | RedisKeyedLock:
    """Build the lock backend selected by BOOTSTRAP_LOCK_BACKEND."""
    if settings.BOOTSTRAP_LOCK_BACKEND == "redis":
        if redis is None:
            raise ValueError("Redis lock backend requires a Redis client")
        return RedisKeyedLock(redis, timeout=settings.BOOTSTRAP_LOCK_TIMEOUT_SECONDS)
    return LocalKeyedLock()
