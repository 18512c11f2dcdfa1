import asyncio

import pytest

from arcanepaths.clock import AsyncioClock, ManualClock
from arcanepaths.events import EventEmitter


def test_manual_clock_fires_in_due_order() -> None:
    clock = ManualClock()
    fired: list[str] = []
    clock.schedule_after(2.0, lambda: fired.append("late"))
    clock.schedule_after(1.0, lambda: fired.append("early"))

    assert clock.advance(1.5) == 1
    assert fired == ["early"]
    assert clock.now() == 1.5

    clock.advance(1.0)
    assert fired == ["early", "late"]


def test_manual_clock_runs_callbacks_scheduled_during_advance() -> None:
    clock = ManualClock()
    fired: list[float] = []

    def chain() -> None:
        fired.append(clock.now())
        if len(fired) < 3:
            clock.schedule_after(1.0, chain)

    clock.schedule_after(1.0, chain)
    clock.advance(10.0)
    assert fired == [1.0, 2.0, 3.0]
    assert clock.now() == 10.0


def test_cancelled_call_never_fires() -> None:
    clock = ManualClock()
    fired: list[int] = []
    call = clock.schedule_after(1.0, lambda: fired.append(1))
    call.cancel()
    assert clock.pending() == 0
    clock.advance(5.0)
    assert fired == []
    assert call.fired is False


def test_advance_rejects_negative() -> None:
    with pytest.raises(ValueError):
        ManualClock().advance(-1.0)


def test_run_until_idle_stops_at_deadline() -> None:
    clock = ManualClock()
    fired: list[int] = []
    clock.schedule_after(5.0, lambda: fired.append(5))
    clock.schedule_after(50.0, lambda: fired.append(50))
    assert clock.run_until_idle(max_seconds=10.0) == 1
    assert fired == [5]
    assert clock.pending() == 1


def test_asyncio_clock_schedules_on_running_loop() -> None:
    async def scenario() -> list[str]:
        clock = AsyncioClock()
        fired: list[str] = []
        start = clock.now()
        clock.schedule_after(0.01, lambda: fired.append("done"))
        cancelled = clock.schedule_after(0.01, lambda: fired.append("cancelled"))
        cancelled.cancel()
        await asyncio.sleep(0.05)
        assert clock.now() > start
        return fired

    assert asyncio.run(scenario()) == ["done"]


def test_event_emitter_subscribe_and_unsubscribe() -> None:
    emitter = EventEmitter()
    seen: list[int] = []
    remove = emitter.subscribe("score", seen.append)
    emitter.emit("score", 10)
    remove()
    emitter.emit("score", 20)
    assert seen == [10]
    assert emitter.unsubscribe("score", seen.append) is False
    emitter.emit("nobody-listens")
