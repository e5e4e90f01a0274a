"""
Tick Sources
============
Scheduling abstraction used by the animation controller and the 3D preview.

Why is this file needed?
------------------------
1. Testability: The controller never touches QTimer directly. Tests inject a
   ManualScheduler and advance its clock explicitly, so a full 6 s run
   completes synchronously and deterministically.
2. Cancellation: Every scheduled callback is represented by a handle whose
   ``cancel()`` may be called any number of times.

Classes:
    TimerHandle: Cancellable handle returned by every scheduling call.
    Scheduler: Protocol shared by the implementations below.
    QtScheduler: QTimer-backed scheduler running on the Qt event loop.
    ManualScheduler: Fake clock; callbacks fire only from ``advance()``.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QElapsedTimer, QObject, Qt, QTimer

from impactviz.config import FRAME_INTERVAL_MS


Callback = Callable[[], None]


class TimerHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    frame_interval_ms: int

    def now_ms(self) -> int: ...

    def every(self, interval_ms: int, callback: Callback) -> TimerHandle: ...

    def after(self, delay_ms: int, callback: Callback) -> TimerHandle: ...

    def each_frame(self, callback: Callback) -> TimerHandle: ...


# -------------------------------------------------------------------------------
# Qt event loop
# -------------------------------------------------------------------------------

class _QtTimerHandle:
    def __init__(self, timer: QTimer) -> None:
        self._timer: Optional[QTimer] = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None


class QtScheduler(QObject):
    """Schedules callbacks with QTimer. Requires a running Qt event loop."""

    def __init__(self, frame_interval_ms: int = FRAME_INTERVAL_MS, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.frame_interval_ms = frame_interval_ms
        self._clock = QElapsedTimer()
        self._clock.start()

    def now_ms(self) -> int:
        return int(self._clock.elapsed())

    def every(self, interval_ms: int, callback: Callback) -> _QtTimerHandle:
        return self._start(interval_ms, callback, single_shot=False)

    def after(self, delay_ms: int, callback: Callback) -> _QtTimerHandle:
        handle: _QtTimerHandle

        def fire() -> None:
            # Release the timer object once it has done its job
            handle.cancel()
            callback()

        handle = self._start(delay_ms, fire, single_shot=True)
        return handle

    def each_frame(self, callback: Callback) -> _QtTimerHandle:
        return self._start(self.frame_interval_ms, callback, single_shot=False, precise=True)

    def _start(self, interval_ms: int, callback: Callback, single_shot: bool, precise: bool = False) -> _QtTimerHandle:
        timer = QTimer(self)
        timer.setSingleShot(single_shot)
        timer.setInterval(max(0, int(interval_ms)))
        if precise:
            timer.setTimerType(Qt.TimerType.PreciseTimer)
        timer.timeout.connect(callback)
        timer.start()
        return _QtTimerHandle(timer)


# -------------------------------------------------------------------------------
# Manual clock
# -------------------------------------------------------------------------------

@dataclass(eq=False)
class _ManualTimer:
    due: int
    interval: Optional[int]
    callback: Callback
    seq: int
    active: bool = field(default=True)

    def cancel(self) -> None:
        self.active = False


class ManualScheduler:
    """
    Deterministic scheduler for tests and headless runs.

    Time only moves inside :meth:`advance`. Callbacks due within the advanced
    window fire in (due time, registration) order, with ``now_ms()`` set to
    their due time. Callbacks may schedule or cancel other callbacks.
    """

    def __init__(self, frame_interval_ms: int = FRAME_INTERVAL_MS) -> None:
        self.frame_interval_ms = frame_interval_ms
        self._now = 0
        self._timers: list[_ManualTimer] = []
        self._seq = itertools.count()

    def now_ms(self) -> int:
        return self._now

    def every(self, interval_ms: int, callback: Callback) -> _ManualTimer:
        interval = max(1, int(interval_ms))
        return self._add(interval, interval, callback)

    def after(self, delay_ms: int, callback: Callback) -> _ManualTimer:
        return self._add(max(0, int(delay_ms)), None, callback)

    def each_frame(self, callback: Callback) -> _ManualTimer:
        return self.every(self.frame_interval_ms, callback)

    @property
    def pending(self) -> int:
        """Number of callbacks still scheduled."""
        return sum(1 for t in self._timers if t.active)

    def advance(self, ms: int) -> None:
        target = self._now + int(ms)
        while True:
            due = [t for t in self._timers if t.active and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self._now = timer.due
            if timer.interval is None:
                timer.active = False
            else:
                timer.due += timer.interval
            timer.callback()
        self._timers = [t for t in self._timers if t.active]
        self._now = target

    def step_frames(self, count: int = 1) -> None:
        self.advance(count * self.frame_interval_ms)

    def _add(self, delay: int, interval: Optional[int], callback: Callback) -> _ManualTimer:
        timer = _ManualTimer(due=self._now + delay, interval=interval, callback=callback, seq=next(self._seq))
        self._timers.append(timer)
        return timer
