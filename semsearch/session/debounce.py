"""Cancellable timer with epoch tracking for debounced actions."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[None]]


class Debouncer:
    """Runs only the most recently scheduled action after a quiet period.

    Each `schedule()` bumps an epoch and cancels the pending timer. When a
    timer fires it re-checks that its epoch is still the latest before
    running. Actions that already started are never cancelled; callers
    compare epochs with `is_latest()` to discard stale results.

    Example:
        >>> debouncer = Debouncer(0.3)
        >>> debouncer.schedule(lambda: embed_query("a"))
        >>> debouncer.schedule(lambda: embed_query("ab"))  # "a" never runs
    """

    def __init__(self, delay: float):
        """Initialize debouncer.

        Args:
            delay: Quiet period in seconds before an action fires.
        """
        self._delay = delay
        self._epoch = 0
        self._pending: asyncio.Task[None] | None = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def epoch(self) -> int:
        """Epoch of the most recent schedule() or cancel()."""
        return self._epoch

    @property
    def pending(self) -> bool:
        """Whether a timer is waiting to fire."""
        return self._pending is not None and not self._pending.done()

    def is_latest(self, epoch: int) -> bool:
        return epoch == self._epoch

    def schedule(self, action: Action) -> int:
        """Cancel any pending action and schedule `action` after the delay.

        Must be called from within a running event loop.

        Returns:
            Epoch assigned to this action.
        """
        self._cancel_pending()
        self._epoch += 1
        epoch = self._epoch
        task = asyncio.get_running_loop().create_task(self._fire(epoch, action))
        task.add_done_callback(self._on_done)
        self._pending = task
        return epoch

    def cancel(self) -> None:
        """Cancel the pending action and invalidate in-flight ones."""
        self._cancel_pending()
        self._epoch += 1

    async def join(self) -> None:
        """Wait until no action is pending or running."""
        while self.pending or self._running:
            tasks = list(self._running)
            if self.pending:
                tasks.append(self._pending)
            await asyncio.gather(*tasks, return_exceptions=True)

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _fire(self, epoch: int, action: Action) -> None:
        await asyncio.sleep(self._delay)
        if not self.is_latest(epoch):
            return
        task = asyncio.current_task()
        if self._pending is task:
            self._pending = None
        self._running.add(task)
        await action()

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._running.discard(task)
        if self._pending is task:
            self._pending = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Debounced action failed: {exc!r}")


__all__ = ["Debouncer"]
