"""Per-path asyncio locks."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


class PathLocks:
    """Hand out one lock per logical path; idle locks are dropped.

    Thread-safety: safe under asyncio's single-threaded cooperative model.
    The registry bookkeeping happens with no await between lookup and
    mutation. Do NOT share across event loops.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, path: str) -> AsyncGenerator[None]:
        """Hold the lock for path for the duration of the block."""
        lock = self._locks.get(path)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[path] = lock
        self._waiters[path] = self._waiters.get(path, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[path] -= 1
            if self._waiters[path] == 0:
                del self._waiters[path]
                del self._locks[path]

    def __len__(self) -> int:
        return len(self._locks)
