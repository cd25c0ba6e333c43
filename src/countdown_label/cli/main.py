"""CLI entry point for countdown-label.

Uses Click to expose the ``countdown-label`` command group: ``format``
prints a label for a number of seconds and ``run`` drives a live label in
the terminal, mapping job-control signals onto host lifecycle events.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import Callable, TypeVar

import click

import countdown_label
from countdown_label.core.controller import CountdownController, InvalidStateError, format_time
from countdown_label.core.presenter import LabelPresenter, LifecycleEvents, LifecycleSignal
from countdown_label.core.scheduler import AsyncioScheduler

T = TypeVar("T")

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting controller errors to a CLI error.

    On ``ValueError`` or ``InvalidStateError`` the message is printed to
    stderr and the process exits with code 1.
    """
    try:
        return action()
    except (ValueError, InvalidStateError) as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


def _render_line(text: str) -> None:
    click.echo(f"\r{text}", nl=False)


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, lifecycle: LifecycleEvents, detached: asyncio.Event
) -> list[int]:
    """Map SIGTSTP/SIGCONT/SIGHUP onto lifecycle signals; return what was installed."""

    def suspend() -> None:
        lifecycle.emit(LifecycleSignal.SUSPENDING)
        os.kill(os.getpid(), signal.SIGSTOP)

    def detach() -> None:
        lifecycle.emit(LifecycleSignal.DETACHED)
        detached.set()

    handlers = {
        signal.SIGTSTP: suspend,
        signal.SIGCONT: lambda: lifecycle.emit(LifecycleSignal.RESUMED),
        signal.SIGHUP: detach,
    }
    for signum, handler in handlers.items():
        loop.add_signal_handler(signum, handler)
    return list(handlers)


async def _countdown(seconds: int, start_at: int | None, always_show_hours: bool) -> bool:
    """Run one countdown to completion.  Returns ``True`` if it expired."""
    loop = asyncio.get_running_loop()
    done = asyncio.Event()
    controller = CountdownController(
        seconds,
        on_expire=done.set,
        always_show_hours=always_show_hours,
        scheduler=AsyncioScheduler(loop),
    )
    lifecycle = LifecycleEvents()
    presenter = LabelPresenter(controller, lifecycle, render=_render_line)
    installed = _install_signal_handlers(loop, lifecycle, done)
    try:
        presenter.mount()
        controller.start(start_at)
        if not controller.is_expired:
            await done.wait()
        return controller.is_expired
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)
        presenter.unmount()
        controller.dispose()
        click.echo()


@click.group()
@click.version_option(version=countdown_label.__version__, prog_name="countdown-label")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    envvar="COUNTDOWN_LABEL_LOG_LEVEL",
    show_default=True,
    help="Logging verbosity.",
)
def cli(log_level: str) -> None:
    """countdown-label: a countdown timer label for the terminal."""
    logging.basicConfig(level=log_level.upper(), format="%(name)s: %(message)s")


@cli.command(name="format")
@click.argument("seconds", type=click.IntRange(min=0))
@click.option("--always-show-hours", is_flag=True, help="Include HH even below one hour.")
def format_(seconds: int, always_show_hours: bool) -> None:
    """Print the label for SECONDS."""
    click.echo(format_time(seconds, always_show_hours))


@cli.command()
@click.argument("seconds", type=click.IntRange(min=0))
@click.option("--start-at", type=int, default=None, help="Begin from this many seconds.")
@click.option("--always-show-hours", is_flag=True, help="Include HH even below one hour.")
def run(seconds: int, start_at: int | None, always_show_hours: bool) -> None:
    """Count down SECONDS in the terminal.

    Ctrl-Z suspends the countdown and ``fg`` resumes it, subtracting the
    time spent stopped.  SIGHUP resets it and exits.
    """
    expired = _run(lambda: asyncio.run(_countdown(seconds, start_at, always_show_hours)))
    if expired:
        click.echo("Time is up!")
