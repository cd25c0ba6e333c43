"""Tests for the periodic tick schedulers."""

import asyncio

import pytest

from countdown_label.core.controller import CountdownController
from countdown_label.core.scheduler import AsyncioScheduler, ManualScheduler

# ---------------------------------------------------------------------------
# ManualScheduler
# ---------------------------------------------------------------------------


class TestManualScheduler:
    """ManualScheduler fires ticks only when advanced."""

    def test_fires_once_per_interval(self) -> None:
        scheduler = ManualScheduler()
        fired: list[float] = []
        scheduler.schedule_periodic(1.0, lambda: fired.append(scheduler.now))

        scheduler.advance(0.5)
        assert fired == []

        scheduler.advance(2.5)
        assert fired == [1.0, 2.0, 3.0]
        assert scheduler.now == 3.0

    def test_cancel_stops_ticks(self) -> None:
        scheduler = ManualScheduler()
        fired: list[int] = []
        handle = scheduler.schedule_periodic(1.0, lambda: fired.append(1))
        scheduler.advance(1)
        handle.cancel()
        handle.cancel()
        scheduler.advance(5)
        assert fired == [1]
        assert handle.active is False
        assert scheduler.pending == 0

    def test_cancel_from_inside_callback(self) -> None:
        scheduler = ManualScheduler()
        fired: list[int] = []

        def tick() -> None:
            fired.append(1)
            handle.cancel()

        handle = scheduler.schedule_periodic(1.0, tick)
        scheduler.advance(5)
        assert fired == [1]

    def test_interleaves_ticks_in_deadline_order(self) -> None:
        scheduler = ManualScheduler()
        order: list[str] = []
        scheduler.schedule_periodic(1.0, lambda: order.append("a"))
        scheduler.advance(0.5)
        scheduler.schedule_periodic(1.0, lambda: order.append("b"))
        scheduler.advance(2)
        assert order == ["a", "b", "a", "b"]

    def test_rejects_negative_advance(self) -> None:
        with pytest.raises(ValueError):
            ManualScheduler().advance(-1)

    def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValueError):
            ManualScheduler().schedule_periodic(0, lambda: None)


# ---------------------------------------------------------------------------
# AsyncioScheduler
# ---------------------------------------------------------------------------


class TestAsyncioScheduler:
    """AsyncioScheduler ticks on a real event loop."""

    def test_ticks_until_cancelled(self) -> None:
        fired: list[int] = []

        async def scenario() -> None:
            scheduler = AsyncioScheduler()
            done = asyncio.Event()

            def tick() -> None:
                fired.append(1)
                if len(fired) == 3:
                    handle.cancel()
                    done.set()

            handle = scheduler.schedule_periodic(0.01, tick)
            assert handle.active is True
            await asyncio.wait_for(done.wait(), timeout=5)
            assert handle.active is False
            await asyncio.sleep(0.05)

        asyncio.run(scenario())
        assert fired == [1, 1, 1]

    def test_cancel_before_first_tick(self) -> None:
        fired: list[int] = []

        async def scenario() -> None:
            handle = AsyncioScheduler().schedule_periodic(0.01, lambda: fired.append(1))
            handle.cancel()
            handle.cancel()
            await asyncio.sleep(0.05)

        asyncio.run(scenario())
        assert fired == []

    def test_explicit_loop(self) -> None:
        loop = asyncio.new_event_loop()
        try:
            fired: list[int] = []
            handle = AsyncioScheduler(loop).schedule_periodic(0.01, lambda: fired.append(1))
            loop.run_until_complete(asyncio.sleep(0.035))
            handle.cancel()
            assert len(fired) >= 1
        finally:
            loop.close()

    def test_failing_callback_leaves_handle_inactive(self) -> None:
        loop = asyncio.new_event_loop()
        errors: list[BaseException] = []
        loop.set_exception_handler(lambda _loop, context: errors.append(context["exception"]))
        try:

            def tick() -> None:
                raise RuntimeError("observer failed")

            handle = AsyncioScheduler(loop).schedule_periodic(0.01, tick)
            loop.run_until_complete(asyncio.sleep(0.05))
            assert handle.active is False
            assert len(errors) == 1
            assert isinstance(errors[0], RuntimeError)
        finally:
            loop.close()

    def test_failing_observer_stops_controller(self) -> None:
        loop = asyncio.new_event_loop()
        loop.set_exception_handler(lambda _loop, context: None)
        try:
            controller = CountdownController(10, scheduler=AsyncioScheduler(loop))
            controller.start()

            def render() -> None:
                raise RuntimeError("render failed")

            controller.subscribe(render)
            loop.run_until_complete(asyncio.sleep(1.1))
            assert controller.remaining_seconds == 9
            assert controller.is_running is False
            controller.dispose()
        finally:
            loop.close()
