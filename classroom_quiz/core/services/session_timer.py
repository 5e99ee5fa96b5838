"""Cancelable countdown driver for timed quiz attempts."""

from __future__ import annotations

import asyncio
from datetime import datetime
import logging
from typing import Callable

from classroom_quiz.constants.quiz_constants import TICK_INTERVAL_SECONDS
from classroom_quiz.core.models import utcnow

logger = logging.getLogger(__name__)


class SessionTimer:
    """Periodic tick source owned by exactly one attempt session.

    Every tick publishes the elapsed time. When a time limit is set and the
    remaining time reaches zero, ``on_deadline`` runs once. The periodic
    task lives on the asyncio event loop that called ``start()``; from there
    ``on_deadline`` runs in a worker thread because submission blocks on
    storage I/O.
    """

    def __init__(
        self,
        started_at: datetime,
        time_limit_seconds: int | None,
        on_deadline: Callable[[], object] | None = None,
        on_tick: Callable[[float], object] | None = None,
        clock: Callable[[], datetime] = utcnow,
        interval: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        if interval <= 0:
            raise ValueError("Tick interval must be positive.")
        self._started_at = started_at
        self._time_limit_seconds = time_limit_seconds
        self._on_deadline = on_deadline
        self._on_tick = on_tick
        self._clock = clock
        self._interval = interval
        self._cancelled: bool = False
        self._deadline_fired: bool = False
        self._task: asyncio.Task | None = None

    @property
    def time_limit_seconds(self) -> int | None:
        return self._time_limit_seconds

    def is_cancelled(self) -> bool:
        return self._cancelled

    def has_fired_deadline(self) -> bool:
        return self._deadline_fired

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def elapsed_seconds(self) -> float:
        return max(0.0, (self._clock() - self._started_at).total_seconds())

    def remaining_seconds(self) -> float | None:
        if self._time_limit_seconds is None:
            return None
        return self._time_limit_seconds - self.elapsed_seconds()

    def tick(self) -> None:
        """Publish elapsed time and enforce the deadline."""
        if self._advance() and self._on_deadline is not None:
            self._on_deadline()

    def _advance(self) -> bool:
        """Publish elapsed time; return True when the deadline has just passed."""
        if self._cancelled:
            return False
        elapsed = self.elapsed_seconds()
        if self._on_tick is not None:
            self._on_tick(elapsed)
        if self._time_limit_seconds is None or self._deadline_fired:
            return False
        if self._time_limit_seconds - elapsed > 0:
            return False
        self._deadline_fired = True
        self.cancel()
        return True

    def start(self) -> asyncio.Task:
        """Schedule the periodic tick on the running event loop."""
        if self._cancelled:
            raise RuntimeError("A cancelled timer cannot be restarted.")
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def cancel(self) -> None:
        self._cancelled = True
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        loop = task.get_loop()
        # After the deadline the task finishes on its own.
        if task is not current and not loop.is_closed() and not self._deadline_fired:
            loop.call_soon_threadsafe(task.cancel)

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self._interval)
            try:
                if self._advance() and self._on_deadline is not None:
                    await asyncio.to_thread(self._on_deadline)
            except Exception:
                logger.exception("Timer callback failed; stopping timer.")
                self._cancelled = True
