"""Scheduling primitives and the elapsed-time ticker used by the game session."""

from __future__ import annotations

import math
import time
from typing import Callable, Optional, Protocol, Set

from PySide6.QtCore import QObject, QTimer

Clock = Callable[[], float]


class TaskHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs callbacks later on the caller's event loop."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TaskHandle: ...

    def call_repeating(self, interval_ms: int, callback: Callable[[], None]) -> TaskHandle: ...


class _QtTask:
    def __init__(self, owner: "QtScheduler", timer: QTimer) -> None:
        self._owner = owner
        self._timer = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._owner._release(self)

    def _detach(self) -> None:
        if self._timer is not None:
            self._timer.deleteLater()
            self._timer = None


class QtScheduler:
    """Scheduler backed by ``QTimer``; callbacks run on the Qt event loop."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent
        # QTimers without a parent would be collected while still pending.
        self._tasks: Set[_QtTask] = set()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TaskHandle:
        return self._start(delay_ms, callback, single_shot=True)

    def call_repeating(self, interval_ms: int, callback: Callable[[], None]) -> TaskHandle:
        return self._start(interval_ms, callback, single_shot=False)

    def _start(self, delay_ms: int, callback: Callable[[], None], single_shot: bool) -> TaskHandle:
        timer = QTimer(self._parent)
        timer.setSingleShot(single_shot)
        task = _QtTask(self, timer)

        def _fire() -> None:
            if single_shot:
                self._release(task)
            callback()

        timer.timeout.connect(_fire)
        self._tasks.add(task)
        timer.start(max(0, int(delay_ms)))
        return task

    def _release(self, task: _QtTask) -> None:
        self._tasks.discard(task)
        task._detach()


class GameTimer:
    """Elapsed-seconds ticker anchored on an absolute start time.

    Elapsed time is always ``floor(clock() - anchor)``, never accumulated per
    tick, so a late or skipped tick cannot make it drift. At most one tick
    source is alive per timer.
    """

    def __init__(self, scheduler: Scheduler, clock: Clock = time.time, interval_ms: int = 1000) -> None:
        self._scheduler = scheduler
        self._clock = clock
        self._interval_ms = interval_ms
        self._anchor: Optional[float] = None
        self._task: Optional[TaskHandle] = None
        self._on_tick: Optional[Callable[[int], None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None

    @property
    def anchor(self) -> Optional[float]:
        return self._anchor

    def start(self, anchor: float, on_tick: Callable[[int], None]) -> None:
        self.stop()
        self._anchor = anchor
        self._on_tick = on_tick
        self._task = self._scheduler.call_repeating(self._interval_ms, self._tick)

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._anchor = None
        self._on_tick = None

    def elapsed(self) -> int:
        if self._anchor is None:
            return 0
        return max(0, math.floor(self._clock() - self._anchor))

    def _tick(self) -> None:
        if self._on_tick is None:
            return
        self._on_tick(self.elapsed())
