"""Unit tests for PathLocks."""

from __future__ import annotations

import asyncio

import pytest

from virtualfs.services.lock_service import PathLocks


class TestPathLocks:
    async def test_same_path_is_exclusive(self) -> None:
        locks = PathLocks()
        events: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("x.txt"):
                events.append(f"{name}-enter")
                await asyncio.sleep(0.01)
                events.append(f"{name}-exit")

        await asyncio.gather(worker("a"), worker("b"))
        assert events in (
            ["a-enter", "a-exit", "b-enter", "b-exit"],
            ["b-enter", "b-exit", "a-enter", "a-exit"],
        )

    async def test_different_paths_overlap(self) -> None:
        locks = PathLocks()
        inside = asyncio.Event()
        release = asyncio.Event()

        async def first() -> None:
            async with locks.hold("a"):
                inside.set()
                await release.wait()

        task = asyncio.create_task(first())
        await inside.wait()
        async with locks.hold("b"):
            assert len(locks) == 2
        release.set()
        await task

    async def test_idle_locks_are_dropped(self) -> None:
        locks = PathLocks()
        async with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0

    async def test_lock_released_on_error(self) -> None:
        locks = PathLocks()
        with pytest.raises(RuntimeError):
            async with locks.hold("a"):
                raise RuntimeError("boom")
        assert len(locks) == 0
        async with locks.hold("a"):
            pass

    async def test_waiter_keeps_lock_alive(self) -> None:
        locks = PathLocks()
        order: list[int] = []

        async def worker(n: int) -> None:
            async with locks.hold("p"):
                order.append(n)
                await asyncio.sleep(0)

        await asyncio.gather(*(worker(n) for n in range(5)))
        assert sorted(order) == list(range(5))
        assert len(locks) == 0
