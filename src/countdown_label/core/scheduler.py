"""Periodic tick sources for the countdown controller.

A scheduler registers a callback that fires every *interval* seconds and
hands back a :class:`TickHandle` that cancels it.  Two implementations are
provided: :class:`AsyncioScheduler` for a real event loop and
:class:`ManualScheduler`, which fires ticks only when its virtual clock is
advanced explicitly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TickHandle(Protocol):
    """A cancellable periodic-tick registration."""

    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can register a periodic callback."""

    def schedule_periodic(self, interval: float, callback: TickCallback) -> TickHandle: ...


# ---------------------------------------------------------------------------
# asyncio
# ---------------------------------------------------------------------------


class _LoopTick:
    """Periodic callback driven by ``loop.call_at`` on absolute deadlines."""

    def __init__(
        self, loop: asyncio.AbstractEventLoop, interval: float, callback: TickCallback
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._deadline = loop.time() + interval
        self._timer: asyncio.TimerHandle | None = loop.call_at(self._deadline, self._fire)

    @property
    def active(self) -> bool:
        return self._timer is not None

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        rescheduled = False
        try:
            self._callback()
            # The callback may have cancelled us.
            if self._timer is not None:
                self._deadline += self._interval
                self._timer = self._loop.call_at(self._deadline, self._fire)
                rescheduled = True
        finally:
            if not rescheduled:
                self._timer = None


class AsyncioScheduler:
    """Schedule ticks on an asyncio event loop.

    If no *loop* is given, the running loop at the time of the first
    :meth:`schedule_periodic` call is used.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule_periodic(self, interval: float, callback: TickCallback) -> TickHandle:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        logger.debug("Scheduling %ss tick on %r", interval, self._loop)
        return _LoopTick(self._loop, interval, callback)


# ---------------------------------------------------------------------------
# Virtual time
# ---------------------------------------------------------------------------


class _ManualTick:
    def __init__(self, owner: ManualScheduler, interval: float, callback: TickCallback) -> None:
        self._owner = owner
        self.interval = interval
        self.callback = callback
        self.deadline = owner.now + interval
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._owner._ticks.remove(self)


class ManualScheduler:
    """A scheduler whose clock only moves when :meth:`advance` is called.

    Ticks due within the advanced window fire in deadline order, each one
    seeing ``now`` set to its own deadline.
    """

    def __init__(self) -> None:
        self.now: float = 0.0
        self._ticks: list[_ManualTick] = []

    @property
    def pending(self) -> int:
        """Number of active tick registrations."""
        return len(self._ticks)

    def schedule_periodic(self, interval: float, callback: TickCallback) -> TickHandle:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        tick = _ManualTick(self, interval, callback)
        self._ticks.append(tick)
        return tick

    def advance(self, seconds: float) -> None:
        """Move the clock forward by *seconds*, firing every tick that falls due."""
        if seconds < 0:
            raise ValueError(f"cannot advance by a negative amount, got {seconds}")
        target = self.now + seconds
        while True:
            due = [t for t in self._ticks if t.deadline <= target]
            if not due:
                break
            tick = min(due, key=lambda t: t.deadline)
            self.now = tick.deadline
            tick.deadline += tick.interval
            tick.callback()
        self.now = target
