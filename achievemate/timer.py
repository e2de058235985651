"""Focus countdown timer for Achieve-mate.

A single-session state machine:

    IDLE --start--> RUNNING <--pause/resume--> PAUSED
    RUNNING --tick to zero--> COMPLETED --> IDLE (session recorded)
    RUNNING | PAUSED --stop--> IDLE (nothing recorded)

The once-per-second tick comes from a ``Scheduler``. Every transition out
of RUNNING cancels the outstanding tick handle before changing state, so a
stale tick can never fire after a pause or stop.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Protocol

from achievemate.models import FocusSession

log = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class TimerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class TickHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule_repeating(self, interval: float, callback: Callable[[], Any]) -> TickHandle: ...


class _RepeatingCall:
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], Any]) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._handle = loop.call_later(interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Re-arm first so a callback that cancels also cancels the next call.
        self._handle = self._loop.call_later(self._interval, self._fire)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()


class AsyncioScheduler:
    """Repeating calls on an asyncio event loop via ``call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule_repeating(self, interval: float, callback: Callable[[], Any]) -> TickHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _RepeatingCall(loop, interval, callback)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class FocusTimer:
    def __init__(
        self,
        duration: int = 25,
        task: str = "",
        scheduler: Scheduler | None = None,
        on_complete: Callable[[FocusSession], Any] | None = None,
        notify: Callable[[FocusSession], Any] | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        """
        Args:
            duration: Session length in minutes.
            task: Label recorded with the completed session.
            scheduler: Source of the 1-second tick; with None the owner
                calls ``tick`` itself.
            on_complete: Receives the FocusSession of a natural completion.
            notify: Alert side effect fired when the countdown hits zero.
            clock: Timestamp source for completed sessions.
        """
        if duration <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        self.scheduler = scheduler
        self.on_complete = on_complete
        self.notify = notify
        self.clock = clock
        self._duration = duration
        self._task = task
        self._remaining = duration * 60
        self._state = TimerState.IDLE
        self._handle: TickHandle | None = None

    # ── Read-only views ───────────────────────────────────────

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def task(self) -> str:
        return self._task

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def is_idle(self) -> bool:
        return self._state == TimerState.IDLE

    @property
    def is_running(self) -> bool:
        return self._state == TimerState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._state == TimerState.PAUSED

    @property
    def is_active(self) -> bool:
        """Running or paused."""
        return self._state in (TimerState.RUNNING, TimerState.PAUSED)

    def display(self) -> str:
        minutes, seconds = divmod(self._remaining, 60)
        return f"{minutes:02d}:{seconds:02d}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "task": self._task,
            "duration": self._duration,
            "remaining": self._remaining,
            "display": self.display(),
        }

    # ── Configuration (idle only) ─────────────────────────────

    def set_task(self, task: str) -> None:
        if self.is_active:
            raise ValueError("Cannot change the task of an active session")
        self._task = task

    def set_duration(self, minutes: int) -> None:
        if self.is_active:
            raise ValueError("Cannot change the duration of an active session")
        if minutes <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        self._duration = minutes
        self._remaining = minutes * 60

    # ── Transitions ───────────────────────────────────────────

    def start(self, task: str | None = None, duration: int | None = None) -> None:
        """Begin a countdown, optionally with a new task and duration.

        Raises ValueError when a session is already active, the task name
        is empty or the duration is not positive. Every check runs before
        anything is applied, so a rejected start leaves the timer as it was.
        """
        if not self.is_idle:
            raise ValueError("A focus session is already active. Stop it first.")
        task = self._task if task is None else task
        duration = self._duration if duration is None else duration
        if not task.strip():
            raise ValueError("Task name is required")
        if duration <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        self._task = task
        self._duration = duration
        self._remaining = self._duration * 60
        self._state = TimerState.RUNNING
        self._schedule()
        log.info("Focus started: %r for %d min", self._task, self._duration)

    def pause(self) -> bool:
        if not self.is_running:
            return False
        self._cancel()
        self._state = TimerState.PAUSED
        return True

    def resume(self) -> bool:
        if not self.is_paused:
            return False
        self._state = TimerState.RUNNING
        self._schedule()
        return True

    def toggle(self) -> None:
        """Play/pause button: start when idle, otherwise flip pause."""
        if self.is_idle:
            self.start()
        elif self.is_running:
            self.pause()
        else:
            self.resume()

    def stop(self) -> bool:
        """Abandon the active session without recording it."""
        if not self.is_active:
            return False
        self._cancel()
        self._reset()
        log.info("Focus stopped: %r", self._task)
        return True

    def tick(self) -> FocusSession | None:
        """Advance one second. Returns the session when this tick completes it."""
        if not self.is_running or self._remaining <= 0:
            return None
        self._remaining -= 1
        if self._remaining == 0:
            return self._complete()
        return None

    def close(self) -> None:
        """Tear down the tick schedule (owner unmount); state is kept."""
        self._cancel()

    # ── Internals ─────────────────────────────────────────────

    def _complete(self) -> FocusSession:
        self._cancel()
        self._state = TimerState.COMPLETED
        session = FocusSession(
            date=self.clock().isoformat(timespec="seconds"),
            duration=self._duration,
            task=self._task,
        )
        log.info("Focus completed: %r (%d min)", session.task, session.duration)
        try:
            if self.notify is not None:
                self.notify(session)
            if self.on_complete is not None:
                self.on_complete(session)
        finally:
            self._reset()
        return session

    def _reset(self) -> None:
        self._state = TimerState.IDLE
        self._remaining = self._duration * 60

    def _schedule(self) -> None:
        self._cancel()
        if self.scheduler is not None:
            self._handle = self.scheduler.schedule_repeating(TICK_SECONDS, self.tick)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
