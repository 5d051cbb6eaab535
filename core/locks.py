"""
Per-interviewer scheduling locks.

Scheduling is check-then-write: read the interviewer's calendar, then insert.
Two requests for the same interviewer must not interleave between those
steps. Locks are keyed by ``interviewer:{id}:{bucket}`` where a bucket is a
fixed slice of wall-clock time. Any two overlapping intervals share at least
one instant and therefore at least one bucket, so holding every bucket an
interval touches serialises all requests that could conflict with it.

Usage:
    locks = build_lock_manager(settings)

    async with locks.hold(lock_keys([7, 9], interval, locks.bucket_minutes)):
        ...  # re-check conflicts and commit
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Iterable, Optional

from redis.asyncio import Redis, from_url
from redis.exceptions import LockError

from core.config import Settings
from core.errors import ConcurrentModification
from core.workflow.scheduling import Interval

logger = logging.getLogger(__name__)

_LAST_INSTANT = timedelta(microseconds=1)


def lock_keys(
    interviewer_ids: Iterable[int], interval: Interval, bucket_minutes: int
) -> list[str]:
    """
    Build the sorted lock keys for every bucket ``interval`` touches.

    Args:
        interviewer_ids: Interviewers on the panel
        interval: Proposed half-open interval
        bucket_minutes: Bucket width in minutes

    Returns:
        Sorted, de-duplicated lock keys
    """
    width = bucket_minutes * 60
    first = int(interval.start.timestamp() // width)
    last = int((interval.end - _LAST_INSTANT).timestamp() // width)
    keys = {
        f"interviewer:{interviewer_id}:{bucket}"
        for interviewer_id in interviewer_ids
        for bucket in range(first, last + 1)
    }
    return sorted(keys)


class LocalInterviewerLocks:
    """In-process lock registry for single-worker deployments and tests."""

    def __init__(self, bucket_minutes: int = 1440, timeout_seconds: float = 10.0):
        self.bucket_minutes = bucket_minutes
        self.timeout_seconds = timeout_seconds
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]) -> AsyncIterator[None]:
        acquired: list[asyncio.Lock] = []
        try:
            for key in sorted(keys):
                lock = self._lock_for(key)
                try:
                    await asyncio.wait_for(lock.acquire(), timeout=self.timeout_seconds)
                except asyncio.TimeoutError:
                    logger.warning(f"Timed out waiting for scheduling lock {key}")
                    raise ConcurrentModification(
                        "Interviewer calendar is busy, retry the request", lock=key
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


class RedisInterviewerLocks:
    """Redis-backed locks shared by every API worker."""

    def __init__(
        self,
        redis_url: str,
        bucket_minutes: int = 1440,
        timeout_seconds: float = 10.0,
        client: Optional[Redis] = None,
    ):
        self.redis_url = redis_url
        self.bucket_minutes = bucket_minutes
        self.timeout_seconds = timeout_seconds
        self._redis = client

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = from_url(self.redis_url, encoding="utf-8", decode_responses=True)
            logger.info("Redis scheduling locks initialized")
        return self._redis

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]) -> AsyncIterator[None]:
        acquired = []
        try:
            for key in sorted(keys):
                # Lease outlives the wait so a crashed holder eventually frees it.
                lock = self.redis.lock(
                    f"locks:{key}",
                    timeout=self.timeout_seconds * 2,
                    blocking_timeout=self.timeout_seconds,
                )
                if not await lock.acquire():
                    logger.warning(f"Timed out waiting for scheduling lock {key}")
                    raise ConcurrentModification(
                        "Interviewer calendar is busy, retry the request", lock=key
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                try:
                    await lock.release()
                except LockError as e:
                    logger.error(f"Failed to release scheduling lock {lock.name}: {e}")


def build_lock_manager(settings: Settings):
    """Create the lock backend selected by ``SCHEDULING_LOCK_BACKEND``."""
    if settings.scheduling_lock_backend == "redis":
        return RedisInterviewerLocks(
            str(settings.redis_url),
            bucket_minutes=settings.scheduling_lock_bucket_minutes,
            timeout_seconds=settings.scheduling_lock_timeout_seconds,
        )
    return LocalInterviewerLocks(
        bucket_minutes=settings.scheduling_lock_bucket_minutes,
        timeout_seconds=settings.scheduling_lock_timeout_seconds,
    )
