"""Tests for achievemate/timer.py — focus countdown state machine."""

import asyncio
from datetime import datetime, timezone

import pytest

from achievemate.timer import AsyncioScheduler, FocusTimer, TimerState


def _clock():
    return datetime(2026, 2, 11, 9, 25, tzinfo=timezone.utc)


def _timer(scheduler=None, duration=25, task="Write essay"):
    sessions, alerts = [], []
    timer = FocusTimer(
        duration=duration,
        task=task,
        scheduler=scheduler,
        on_complete=sessions.append,
        notify=alerts.append,
        clock=_clock,
    )
    return timer, sessions, alerts


def test_start_runs_full_duration(scheduler):
    timer, _, _ = _timer(scheduler)
    timer.start()
    assert timer.state == TimerState.RUNNING
    assert timer.remaining == 1500
    assert len(scheduler.live) == 1


def test_natural_completion_records_one_session(scheduler):
    timer, sessions, alerts = _timer(scheduler)
    timer.start()
    scheduler.fire(1499)
    assert timer.remaining == 1
    assert sessions == []

    scheduler.fire(1)
    assert len(sessions) == 1
    assert sessions[0].duration == 25
    assert sessions[0].task == "Write essay"
    assert sessions[0].date == "2026-02-11T09:25:00+00:00"
    assert len(alerts) == 1
    assert timer.state == TimerState.IDLE
    assert timer.remaining == 1500
    assert scheduler.live == []

    # no stray ticks after completion
    scheduler.fire(10)
    assert len(sessions) == 1


def test_tick_returns_completed_session():
    timer, sessions, _ = _timer(duration=1)
    timer.start()
    results = [timer.tick() for _ in range(60)]
    assert results[:-1] == [None] * 59
    assert results[-1] == sessions[0]


def test_stop_discards_progress(scheduler):
    timer, sessions, _ = _timer(scheduler)
    timer.start()
    scheduler.fire(10)
    assert timer.remaining == 1490

    assert timer.stop() is True
    assert timer.state == TimerState.IDLE
    assert timer.remaining == 1500
    assert sessions == []
    assert scheduler.live == []


def test_stop_while_idle_is_noop():
    timer, _, _ = _timer()
    assert timer.stop() is False
    assert timer.is_idle


def test_empty_task_rejected(scheduler):
    for task in ("", "   "):
        timer, sessions, _ = _timer(scheduler, task=task)
        with pytest.raises(ValueError, match="Task name"):
            timer.start()
        assert timer.state == TimerState.IDLE
        assert timer.remaining == 1500
        timer.tick()
        assert sessions == []
    assert scheduler.handles == []


def test_start_while_active_rejected():
    timer, _, _ = _timer()
    timer.start()
    with pytest.raises(ValueError, match="already active"):
        timer.start()


def test_pause_preserves_remaining_and_cancels_tick(scheduler):
    timer, _, _ = _timer(scheduler)
    timer.start()
    scheduler.fire(5)
    assert timer.pause() is True
    assert timer.state == TimerState.PAUSED
    assert scheduler.live == []

    timer.tick()  # a late tick while paused changes nothing
    assert timer.remaining == 1495

    assert timer.resume() is True
    assert len(scheduler.live) == 1
    scheduler.fire(5)
    assert timer.remaining == 1490


def test_stop_from_paused(scheduler):
    timer, sessions, _ = _timer(scheduler)
    timer.start()
    timer.pause()
    assert timer.stop() is True
    assert timer.remaining == 1500
    assert sessions == []


def test_toggle_cycles_start_pause_resume():
    timer, _, _ = _timer()
    timer.toggle()
    assert timer.is_running
    timer.toggle()
    assert timer.is_paused
    timer.toggle()
    assert timer.is_running


def test_only_one_live_tick_after_repeated_pause_resume(scheduler):
    timer, _, _ = _timer(scheduler)
    timer.start()
    for _ in range(5):
        timer.pause()
        timer.resume()
    assert len(scheduler.live) == 1
    scheduler.fire(1)
    assert timer.remaining == 1499


def test_set_duration_while_idle():
    timer, _, _ = _timer()
    timer.set_duration(45)
    assert timer.remaining == 2700
    assert timer.display() == "45:00"
    with pytest.raises(ValueError):
        timer.set_duration(0)


def test_configuration_locked_while_active():
    timer, _, _ = _timer()
    timer.start()
    with pytest.raises(ValueError):
        timer.set_duration(60)
    with pytest.raises(ValueError):
        timer.set_task("Other")


def test_close_cancels_outstanding_tick(scheduler):
    timer, _, _ = _timer(scheduler)
    timer.start()
    timer.close()
    assert scheduler.live == []


def test_display_format():
    timer, _, _ = _timer(duration=1)
    timer.start()
    for _ in range(5):
        timer.tick()
    assert timer.display() == "00:55"


def test_asyncio_scheduler_ticks_and_cancels():
    async def scenario():
        ticks = []
        handle = AsyncioScheduler().schedule_repeating(0.01, lambda: ticks.append(1))
        await asyncio.sleep(0.1)
        handle.cancel()
        seen = len(ticks)
        await asyncio.sleep(0.05)
        return seen, len(ticks)

    seen, after = asyncio.run(scenario())
    assert seen >= 2
    assert after == seen


def test_start_with_task_and_duration():
    timer, _, _ = _timer(task="")
    timer.start(task="Read", duration=45)
    assert timer.task == "Read"
    assert timer.remaining == 2700


def test_rejected_start_keeps_configuration():
    timer, _, _ = _timer(duration=25, task="Write essay")
    with pytest.raises(ValueError, match="Task name"):
        timer.start(task="  ", duration=45)
    with pytest.raises(ValueError, match="Duration"):
        timer.start(task="Read", duration=0)
    assert timer.is_idle
    assert timer.task == "Write essay"
    assert timer.duration == 25
    assert timer.remaining == 1500
