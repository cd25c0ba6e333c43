"""countdown-label: a countdown timer state manager for UI labels."""

from countdown_label.core.controller import (
    CountdownController,
    InvalidStateError,
    Subscription,
    format_time,
)
from countdown_label.core.presenter import LabelPresenter, LifecycleEvents, LifecycleSignal
from countdown_label.core.scheduler import AsyncioScheduler, ManualScheduler

__version__ = "0.1.0"

__all__ = [
    "AsyncioScheduler",
    "CountdownController",
    "InvalidStateError",
    "LabelPresenter",
    "LifecycleEvents",
    "LifecycleSignal",
    "ManualScheduler",
    "Subscription",
    "format_time",
]
