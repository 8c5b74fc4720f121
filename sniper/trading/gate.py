"""Admission control for concurrent pool lifecycles."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

logger = structlog.get_logger(__name__)


class ConcurrencyGate:
    """Bounds buys in flight plus exits in flight by ``max_concurrent``.

    Buys hold a permit from admission to the end of their lifecycle. Exits
    never wait for a permit but count against the bound while running, so a
    busy exit side starves new buys instead of the other way around. A
    rejected buy is dropped, never queued.
    """

    def __init__(self, max_concurrent: int) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._permits_in_use = 0
        self._exits_in_flight = 0

    @property
    def available_permits(self) -> int:
        return self.max_concurrent - self._permits_in_use

    @property
    def exits_in_flight(self) -> int:
        return self._exits_in_flight

    def count_in_flight(self) -> int:
        return self._permits_in_use + self._exits_in_flight

    def is_locked(self) -> bool:
        return self._semaphore.locked()

    async def try_enter(self) -> bool:
        """Take a permit if the gate has room, without waiting for one."""
        busy = self.max_concurrent - self.available_permits + self._exits_in_flight
        if self.is_locked() or busy >= self.max_concurrent:
            logger.debug(
                "Admission rejected",
                permits_in_use=self._permits_in_use,
                exits_in_flight=self._exits_in_flight,
                max_concurrent=self.max_concurrent,
            )
            return False

        # not locked, so this returns without suspending
        await self._semaphore.acquire()
        self._permits_in_use += 1
        return True

    def leave(self) -> None:
        """Release the permit taken by a successful ``try_enter``."""
        if self._permits_in_use <= 0:
            raise RuntimeError("leave() called without a held permit")
        self._permits_in_use -= 1
        self._semaphore.release()

    @asynccontextmanager
    async def exiting(self) -> AsyncIterator[None]:
        """Count an exit lifecycle in flight for the duration of the block."""
        self._exits_in_flight += 1
        try:
            yield
        finally:
            self._exits_in_flight -= 1
