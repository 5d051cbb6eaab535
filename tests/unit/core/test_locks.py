"""
Tests for per-interviewer scheduling locks.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.errors import ConcurrentModification
from core.locks import LocalInterviewerLocks, RedisInterviewerLocks, lock_keys
from core.workflow.scheduling import Interval

T0 = datetime(2030, 3, 4, 10, 0, tzinfo=timezone.utc)


class TestLockKeys:

    def test_single_bucket(self):
        keys = lock_keys([7], Interval(T0, 30), bucket_minutes=60)

        bucket = int(T0.timestamp() // 3600)
        assert keys == [f"interviewer:7:{bucket}"]

    def test_interval_ending_on_boundary_stays_in_one_bucket(self):
        assert len(lock_keys([7], Interval(T0, 60), bucket_minutes=60)) == 1

    def test_interval_spanning_buckets(self):
        keys = lock_keys([7], Interval(T0 + timedelta(minutes=30), 60), bucket_minutes=60)

        assert len(keys) == 2

    def test_keys_are_sorted_and_unique(self):
        keys = lock_keys([9, 7, 9], Interval(T0, 90), bucket_minutes=60)

        assert keys == sorted(set(keys))
        assert len(keys) == 4

    def test_overlapping_intervals_share_a_key(self):
        first = set(lock_keys([7], Interval(T0, 60), bucket_minutes=60))
        second = set(lock_keys([7], Interval(T0 + timedelta(minutes=59), 60), bucket_minutes=60))

        assert first & second


class TestLocalLocks:

    @pytest.mark.asyncio
    async def test_hold_serialises_same_key(self):
        locks = LocalInterviewerLocks(timeout_seconds=1.0)
        order = []

        async def worker(name):
            async with locks.hold(["interviewer:7:1"]):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert order in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self):
        locks = LocalInterviewerLocks(timeout_seconds=0.1)

        async with locks.hold(["interviewer:7:1"]):
            async with locks.hold(["interviewer:8:1"]):
                pass

    @pytest.mark.asyncio
    async def test_timeout_raises_concurrent_modification(self):
        locks = LocalInterviewerLocks(timeout_seconds=0.05)

        async with locks.hold(["interviewer:7:1"]):
            with pytest.raises(ConcurrentModification) as exc_info:
                async with locks.hold(["interviewer:7:1"]):
                    pass

        assert exc_info.value.details["lock"] == "interviewer:7:1"

    @pytest.mark.asyncio
    async def test_locks_released_after_error(self):
        locks = LocalInterviewerLocks(timeout_seconds=0.05)

        with pytest.raises(RuntimeError):
            async with locks.hold(["interviewer:7:1", "interviewer:8:1"]):
                raise RuntimeError("boom")

        async with locks.hold(["interviewer:7:1", "interviewer:8:1"]):
            pass


class TestRedisLocks:

    @pytest.mark.asyncio
    async def test_acquires_in_sorted_order_and_releases(self):
        acquired = []

        def make_lock(name, timeout, blocking_timeout):
            lock = MagicMock()
            lock.name = name
            lock.acquire = AsyncMock(side_effect=lambda: acquired.append(name) or True)
            lock.release = AsyncMock()
            return lock

        client = MagicMock()
        client.lock = MagicMock(side_effect=make_lock)
        locks = RedisInterviewerLocks("redis://test", timeout_seconds=1.0, client=client)

        async with locks.hold(["interviewer:9:1", "interviewer:7:1"]):
            pass

        assert acquired == ["locks:interviewer:7:1", "locks:interviewer:9:1"]
        for call in client.lock.call_args_list:
            assert call.kwargs["blocking_timeout"] == 1.0

    @pytest.mark.asyncio
    async def test_failed_acquire_raises_and_releases_held(self):
        first = MagicMock()
        first.acquire = AsyncMock(return_value=True)
        first.release = AsyncMock()
        second = MagicMock()
        second.acquire = AsyncMock(return_value=False)

        client = MagicMock()
        client.lock = MagicMock(side_effect=[first, second])
        locks = RedisInterviewerLocks("redis://test", client=client)

        with pytest.raises(ConcurrentModification):
            async with locks.hold(["interviewer:7:1", "interviewer:8:1"]):
                pass

        first.release.assert_awaited_once()
