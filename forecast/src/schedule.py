"""
Poll scheduling: wall-clock hour alignment and the recurring update timer.

The next poll always lands 5 seconds past the top of the next hour, so
drift never accumulates across cycles. The timer is a recurring interval
timer in the style of the host platform: an interval of 0 disables it,
and changing the interval while waiting re-arms it immediately.

CHANGELOG:
- 2026-10-13: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

POLL_OFFSET_S: int = 5
"""Seconds past the top of the hour at which the next poll runs."""

INITIAL_INTERVAL_S: float = 3600.0
"""Timer interval armed when the instance becomes ready."""


def next_poll_at(now: datetime) -> datetime:
    """Return the top of the hour following *now* plus the poll offset."""
    next_hour = (now + timedelta(hours=1)).replace(minute=0, second=0, microsecond=0)
    return next_hour + timedelta(seconds=POLL_OFFSET_S)


def next_poll_delay(now: datetime) -> float:
    """Return the seconds from *now* until :func:`next_poll_at`."""
    return (next_poll_at(now) - now).total_seconds()


class UpdateTimer:
    """Recurring interval timer driving the update cycle.

    The callback runs each time the interval elapses. Exceptions raised
    by the callback are logged and never stop the timer.
    """

    def __init__(self) -> None:
        self._interval_s: float = 0.0
        self._changed = asyncio.Event()

    @property
    def interval_s(self) -> float:
        """Current interval in seconds; 0 means disabled."""
        return self._interval_s

    @property
    def enabled(self) -> bool:
        return self._interval_s > 0

    def set_interval(self, seconds: float) -> None:
        """Set the interval in seconds (0 disables) and re-arm the timer."""
        self._interval_s = max(0.0, float(seconds))
        self._changed.set()
        logger.debug("Timer interval set to %.1fs", self._interval_s)

    async def run(
        self,
        callback: Callable[[], Awaitable[object]],
        shutdown_event: asyncio.Event,
    ) -> None:
        """Run the timer until *shutdown_event* is set.

        Args:
            callback: Coroutine function invoked when the interval elapses.
            shutdown_event: Event to signal graceful shutdown.
        """
        logger.info("Update timer started")
        while not shutdown_event.is_set():
            self._changed.clear()
            if not await self._wait(shutdown_event):
                continue
            try:
                await callback()
            except Exception:
                logger.error("Timer callback error", exc_info=True)
        logger.info("Update timer stopped")

    async def _wait(self, shutdown_event: asyncio.Event) -> bool:
        """Wait for the interval to elapse.

        Returns:
            True if the interval elapsed, False if shutdown was requested
            or the interval was changed first.
        """
        timeout = self._interval_s if self._interval_s > 0 else None
        waiters = [
            asyncio.ensure_future(shutdown_event.wait()),
            asyncio.ensure_future(self._changed.wait()),
        ]
        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in waiters:
                waiter.cancel()
        return not done
