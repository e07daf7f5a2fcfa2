"""Admission control for page tasks."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class BoundedTaskPool:
    """
    A fixed-capacity admission gate for concurrent page tasks.

    Each task holds one slot for the whole of its fetch+parse+emit work. Use
    ``async with pool.slot():`` so the slot is released on every exit path,
    exceptions and cancellation included. Waiters are admitted in FIFO order.
    """

    def __init__(self, capacity: int) -> None:
        """Create a new pool.

        Parameters
        ----------
        capacity:
            Maximum number of slots held at once. Must be at least 1.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._in_use = 0
        self._peak = 0

    async def acquire(self) -> None:
        """Wait until a slot is free, then take it."""
        await self._semaphore.acquire()
        self._in_use += 1
        if self._in_use > self._peak:
            self._peak = self._in_use

    def release(self) -> None:
        """Return a slot taken by :meth:`acquire`."""
        if self._in_use == 0:
            raise RuntimeError("release() called more times than acquire()")
        self._in_use -= 1
        self._semaphore.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one slot for the duration of the ``async with`` block."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    @property
    def capacity(self) -> int:
        """Return the fixed concurrency limit."""
        return self._capacity

    @property
    def in_use(self) -> int:
        """Return the number of slots currently held."""
        return self._in_use

    @property
    def peak_in_use(self) -> int:
        """Return the highest number of slots ever held at once."""
        return self._peak
