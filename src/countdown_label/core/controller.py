"""Countdown controller: the state machine behind a timer label."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from countdown_label.core.scheduler import AsyncioScheduler, Scheduler, TickHandle

logger = logging.getLogger(__name__)

_TICK_INTERVAL = 1.0

Listener = Callable[[], None]


class InvalidStateError(Exception):
    """Raised when a controller is used after it has been disposed."""


@dataclass(frozen=True)
class Subscription:
    """Handle returned by :meth:`CountdownController.subscribe`."""

    id: int


def format_time(total_seconds: int, always_show_hours: bool = False) -> str:
    """Format *total_seconds* as ``MM:SS``, or ``HH:MM:SS`` when hours are shown.

    Hours are shown when *always_show_hours* is set or when at least one
    full hour remains.
    """
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    if always_show_hours or hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def _require_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    return value


class CountdownController:
    """Counts a fixed duration down to zero, one second per tick.

    Observers registered with :meth:`subscribe` are called (with no
    arguments) after every change and re-read whatever state they need.
    At most one tick registration is active at a time; every command that
    ends a run cancels and clears it before doing anything else.
    """

    def __init__(
        self,
        duration: int | timedelta,
        *,
        on_expire: Callable[[], None] | None = None,
        always_show_hours: bool = False,
        scheduler: Scheduler | None = None,
    ) -> None:
        if isinstance(duration, timedelta):
            duration = int(duration.total_seconds())
        duration = _require_int("duration", duration)
        if duration < 0:
            raise ValueError(f"duration must not be negative, got {duration}")

        self._duration: int = duration
        self._remaining: int = duration
        self._always_show_hours = always_show_hours
        self._on_expire = on_expire
        self._scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._tick: TickHandle | None = None
        self._observers: dict[Subscription, Listener] = {}
        self._ids = itertools.count(1)
        self._disposed = False

    # -- read-only state -----------------------------------------------------

    @property
    def duration(self) -> int:
        """The full countdown length in seconds."""
        return self._duration

    @property
    def always_show_hours(self) -> bool:
        return self._always_show_hours

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def formatted_time(self) -> str:
        return format_time(self._remaining, self._always_show_hours)

    @property
    def is_expired(self) -> bool:
        return self._remaining <= 0

    @property
    def is_running(self) -> bool:
        return self._tick is not None and self._tick.active

    @property
    def progress(self) -> float:
        """Fraction of the duration already elapsed, from 0.0 to 1.0."""
        if self._duration == 0:
            return 0.0
        return 1 - self._remaining / self._duration

    @property
    def disposed(self) -> bool:
        return self._disposed

    # -- observers -----------------------------------------------------------

    def subscribe(self, callback: Listener) -> Subscription:
        """Register *callback* for change notifications."""
        self._require_live("subscribe")
        subscription = Subscription(next(self._ids))
        self._observers[subscription] = callback
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a registration.  Unknown handles are ignored."""
        self._observers.pop(subscription, None)

    # -- commands ------------------------------------------------------------

    def start(self, start_seconds: int | None = None) -> None:
        """Begin counting down, optionally from *start_seconds*.

        Any run already in progress is cancelled first.  Observers are
        notified straight away with the starting value.
        """
        self._require_live("start")
        if start_seconds is not None:
            start_seconds = _require_int("start_seconds", start_seconds)
            if not (0 <= start_seconds <= self._duration):
                raise ValueError(
                    f"start_seconds must be between 0 and {self._duration}, got {start_seconds}"
                )

        self._cancel_tick()
        if start_seconds is not None:
            self._remaining = start_seconds

        self._notify()
        self._tick = self._scheduler.schedule_periodic(_TICK_INTERVAL, self._on_tick)
        logger.debug("Countdown started at %ss", self._remaining)

    def pause(self) -> None:
        """Stop ticking, keeping the remaining time.  Always notifies."""
        self._cancel_tick()
        logger.debug("Countdown paused at %ss", self._remaining)
        self._notify()

    def resume(self) -> None:
        """Continue from the remaining time.  Does nothing once expired."""
        self._require_live("resume")
        if self._remaining > 0:
            self.start(self._remaining)

    def reset(self) -> None:
        """Stop ticking and return to the full duration."""
        self._cancel_tick()
        self._remaining = self._duration
        logger.debug("Countdown reset to %ss", self._remaining)
        self._notify()

    def restart(self) -> None:
        """Reset, then start counting from the full duration."""
        self._require_live("restart")
        self.reset()
        self.start()

    def update_by_seconds(self, elapsed: int) -> None:
        """Subtract *elapsed* seconds without resuming the countdown.

        The result is clamped to ``[0, duration]``.  Landing on zero from a
        positive value cancels any tick and fires the expiry callback; a
        countdown that had already expired does not fire again.
        """
        elapsed = _require_int("elapsed", elapsed)
        if elapsed < 0:
            raise ValueError(f"elapsed must not be negative, got {elapsed}")

        previous = self._remaining
        self._remaining = min(max(self._remaining - elapsed, 0), self._duration)
        logger.debug("Countdown corrected by %ss to %ss", elapsed, self._remaining)
        self._notify()
        if previous > 0 and self._remaining == 0:
            self._cancel_tick()
            self._expire()

    def dispose(self) -> None:
        """Cancel any tick and drop all observers.  Safe to repeat."""
        self._cancel_tick()
        self._observers.clear()
        self._disposed = True

    # -- private helpers -----------------------------------------------------

    def _on_tick(self) -> None:
        if self._remaining <= 0:
            self._cancel_tick()
            return

        self._remaining -= 1
        if self._remaining <= 0:
            self._remaining = 0
            self._cancel_tick()
            self._notify()
            self._expire()
        else:
            self._notify()

    def _expire(self) -> None:
        logger.debug("Countdown expired")
        if self._on_expire is not None:
            self._on_expire()

    def _cancel_tick(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None

    def _notify(self) -> None:
        # Copy so observers may unsubscribe while being notified.
        for callback in list(self._observers.values()):
            callback()

    def _require_live(self, method: str) -> None:
        if self._disposed:
            raise InvalidStateError(f"{method}() is not valid after dispose()")
