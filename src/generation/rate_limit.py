"""Process-wide spacing of calls to the generative service."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL = 20.0


class RateGate:
    """Spaces successive calls at least *min_interval* seconds apart.

    Each caller reserves the next free slot under a lock and then sleeps
    until it, so concurrent callers queue up in reservation order and the
    lock is never held across a suspension. One gate is shared by every
    generation and edit call in the process.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_slot: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def reserve(self) -> float:
        """Claim the next slot; return how long the caller must wait for it."""
        with self._lock:
            now = self._clock()
            slot = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = slot + self._min_interval
        return slot - now

    async def wait(self) -> None:
        delay = self.reserve()
        if delay > 0:
            logger.debug("rate gate waiting", extra={"delay": round(delay, 3)})
            await self._sleep(delay)
