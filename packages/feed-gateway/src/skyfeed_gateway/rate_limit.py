"""Request budgets for the feed gateway.

The feed service limits page reads and like/repost writes separately, so a
FeedGateway keeps one RequestBudget for each. A run of like toggles never
delays the page fetch the controller is waiting on, and a long update() loop
never starves a toggle.

A budget hands out start slots spaced `1 / per_second` apart. Up to `burst`
calls may start back to back after an idle period; after that each caller
sleeps until its slot. Slots are claimed synchronously, so callers queue in
the order they asked without needing a lock.
"""

from __future__ import annotations

import asyncio
import logging
import time

logger = logging.getLogger(__name__)


class RequestBudget:
    """Spaces calls of one kind (reads or writes) to a steady rate."""

    def __init__(self, name: str, per_second: float, burst: int = 1) -> None:
        if per_second <= 0:
            raise ValueError(f"{name} budget must be positive, got {per_second}")
        self.name = name
        self.interval = 1.0 / per_second
        self.burst = max(burst, 1)
        self.calls = 0
        self.waited = 0.0
        self._next_slot = 0.0

    @classmethod
    def for_rate(cls, name: str, per_second: float) -> RequestBudget:
        """Budget allowing about one second's worth of calls as a burst."""
        return cls(name, per_second, burst=int(per_second))

    def reserve(self) -> float:
        """Claim the next slot and return how many seconds until it starts."""
        now = time.monotonic()
        # Idle time earns back at most `burst` slots.
        start = max(self._next_slot, now - (self.burst - 1) * self.interval)
        self._next_slot = start + self.interval
        self.calls += 1
        return max(0.0, start - now)

    async def acquire(self) -> None:
        """Wait for this caller's slot."""
        delay = self.reserve()
        if delay > 0:
            logger.debug(f"{self.name} budget exhausted, waiting {delay:.2f}s")
            self.waited += delay
            await asyncio.sleep(delay)
