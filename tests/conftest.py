"""Shared fixtures: a controllable clock and a scheduler driven by it."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

import pytest

from brain_cubes.config import GameConfig
from brain_cubes.core.models import GameMode, HintStyle, LevelParams
from brain_cubes.core.progress import ProgressStore
from brain_cubes.core.session import GameSession
from brain_cubes.core.skill import SkillMetrics


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class ManualTask:
    def __init__(self, due_ms: float, interval_ms: Optional[int], callback: Callable[[], None], seq: int) -> None:
        self.due_ms = due_ms
        self.interval_ms = interval_ms
        self.callback = callback
        self.seq = seq
        self.cancelled = False
        self.done = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.done)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Runs tasks only when the test advances the clock."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.tasks: List[ManualTask] = []
        self._seq = 0

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ManualTask:
        return self._add(delay_ms, None, callback)

    def call_repeating(self, interval_ms: int, callback: Callable[[], None]) -> ManualTask:
        return self._add(interval_ms, interval_ms, callback)

    def _add(self, delay_ms: int, interval_ms: Optional[int], callback: Callable[[], None]) -> ManualTask:
        self._seq += 1
        task = ManualTask(round(self.clock.now * 1000) + delay_ms, interval_ms, callback, self._seq)
        self.tasks.append(task)
        return task

    def active_repeating(self) -> List[ManualTask]:
        return [t for t in self.tasks if t.active and t.interval_ms is not None]

    def active_one_shots(self) -> List[ManualTask]:
        return [t for t in self.tasks if t.active and t.interval_ms is None]

    def advance(self, seconds: float) -> None:
        target_ms = round(self.clock.now * 1000) + round(seconds * 1000)
        while True:
            due = [t for t in self.tasks if t.active and t.due_ms <= target_ms]
            if not due:
                break
            task = min(due, key=lambda t: (t.due_ms, t.seq))
            self.clock.now = max(self.clock.now, task.due_ms / 1000)
            if task.interval_ms is None:
                task.done = True
            else:
                task.due_ms += task.interval_ms
            task.callback()
        self.clock.now = max(self.clock.now, target_ms / 1000)

    def run_pending(self) -> None:
        self.advance(0)


class StubGenerator:
    """Hands out a fixed level shape and records every request."""

    def __init__(self, **overrides) -> None:
        self.calls: List[tuple] = []
        self.overrides = overrides

    def generate_level(self, level: int, metrics: SkillMetrics, seed: Optional[int] = None) -> LevelParams:
        self.calls.append((level, metrics, seed))
        params = dict(
            game_mode=GameMode.CLASSIC,
            target_number=42,
            range_min=1,
            range_max=100,
            max_attempts=6,
            hint_style=HintStyle.BASIC,
            seed=seed if seed is not None else level * 100,
            time_limit=None,
        )
        params.update(self.overrides)
        return LevelParams(**params)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scheduler(clock: FakeClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture()
def store(tmp_path: Path) -> ProgressStore:
    return ProgressStore(tmp_path)


@pytest.fixture()
def generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture()
def make_session(store, scheduler, clock, tmp_path):
    def _make(generator=None, load: bool = True, **config) -> GameSession:
        session = GameSession(
            store=store,
            generator=generator or StubGenerator(),
            scheduler=scheduler,
            clock=clock,
            config=GameConfig(data_dir=tmp_path, **config),
        )
        if load:
            session.load()
        return session

    return _make


@pytest.fixture()
def session(make_session, generator) -> GameSession:
    return make_session(generator=generator)
