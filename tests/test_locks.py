"""
Tests for per-key locks
"""
import asyncio

import pytest

from teamchat.services.locks import KeyedLock


class TestKeyedLock:

    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self):
        locks = KeyedLock()
        order = []

        async def worker(name):
            async with locks.hold("channel"):
                order.append(f"{name} in")
                await asyncio.sleep(0)
                order.append(f"{name} out")

        await asyncio.gather(worker("a"), worker("b"))

        assert order == ["a in", "a out", "b in", "b out"]

    @pytest.mark.asyncio
    async def test_lock_is_dropped_once_idle(self):
        locks = KeyedLock()

        async with locks.hold(1):
            assert 1 in locks
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_survives_while_someone_waits(self):
        locks = KeyedLock()
        release = asyncio.Event()

        async def holder():
            async with locks.hold(1):
                await release.wait()

        first = asyncio.create_task(holder())
        await asyncio.sleep(0)
        second = asyncio.create_task(holder())
        await asyncio.sleep(0)

        release.set()
        await asyncio.gather(first, second)

        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_is_dropped_when_body_raises(self):
        locks = KeyedLock()

        with pytest.raises(RuntimeError):
            async with locks.hold("k"):
                raise RuntimeError("boom")
        assert "k" not in locks
