"""Label presenter: renders a controller and reconciles host lifecycle events."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

from countdown_label.core.controller import CountdownController, Subscription

logger = logging.getLogger(__name__)


class LifecycleSignal(Enum):
    """Host application lifecycle transitions."""

    SUSPENDING = "suspending"
    RESUMED = "resumed"
    DETACHED = "detached"
    INACTIVE = "inactive"
    HIDDEN = "hidden"


LifecycleListener = Callable[[LifecycleSignal], None]


class LifecycleEvents:
    """Fan-out source of :class:`LifecycleSignal` values."""

    def __init__(self) -> None:
        self._listeners: list[LifecycleListener] = []

    def add_listener(self, listener: LifecycleListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: LifecycleListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, signal: LifecycleSignal) -> None:
        for listener in list(self._listeners):
            listener(signal)


class LabelPresenter:
    """Keeps a text label in sync with a :class:`CountdownController`.

    While mounted, every controller notification re-renders
    :attr:`text`, and host lifecycle signals are translated into
    controller commands:

    * ``SUSPENDING`` records the wall-clock time and pauses.
    * ``RESUMED`` subtracts the whole seconds spent suspended and resumes
      unless that finished the countdown.
    * ``DETACHED`` resets.

    The presenter only references the controller; disposing it remains
    the owner's job.
    """

    def __init__(
        self,
        controller: CountdownController,
        lifecycle: LifecycleEvents,
        render: Callable[[str], None] | None = None,
    ) -> None:
        self._controller = controller
        self._lifecycle = lifecycle
        self._render = render
        self._subscription: Subscription | None = None
        self._suspended_at: float | None = None
        self.text: str = controller.formatted_time

    @property
    def mounted(self) -> bool:
        return self._subscription is not None

    def mount(self) -> None:
        """Start rendering and listening for lifecycle signals."""
        if self.mounted:
            return
        self._subscription = self._controller.subscribe(self._refresh)
        self._lifecycle.add_listener(self.handle_lifecycle)
        self._refresh()

    def unmount(self) -> None:
        """Stop rendering and deregister from the lifecycle source."""
        if self._subscription is None:
            return
        self._controller.unsubscribe(self._subscription)
        self._subscription = None
        self._lifecycle.remove_listener(self.handle_lifecycle)
        self._suspended_at = None

    def handle_lifecycle(self, signal: LifecycleSignal) -> None:
        if signal is LifecycleSignal.SUSPENDING:
            self._suspended_at = time.time()
            self._controller.pause()
        elif signal is LifecycleSignal.RESUMED:
            if self._suspended_at is None:
                return
            # Wall clock may step backwards while suspended.
            elapsed = max(int(time.time() - self._suspended_at), 0)
            self._suspended_at = None
            logger.debug("Resumed after %ss suspended", elapsed)
            self._controller.update_by_seconds(elapsed)
            if not self._controller.is_expired:
                self._controller.resume()
        elif signal is LifecycleSignal.DETACHED:
            self._controller.reset()

    def _refresh(self) -> None:
        self.text = self._controller.formatted_time
        if self._render is not None:
            self._render(self.text)
