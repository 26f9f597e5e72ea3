from __future__ import annotations

import json
import logging
import time
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from brain_cubes.config import GameConfig
from brain_cubes.core.levels import LevelGenerator, get_hint
from brain_cubes.core.models import (
    PROFILE_FIELDS,
    Feedback,
    GameState,
    GuessResult,
    LevelParams,
    LevelResult,
    PlayerProfile,
)
from brain_cubes.core.progress import ProgressStore
from brain_cubes.core.skill import (
    PlayerStats,
    SkillMetrics,
    calculate_level_accuracy,
    calculate_skill_metrics,
    create_initial_skill_metrics,
    create_initial_stats,
    update_stats_with_result,
)
from brain_cubes.core.timer import Clock, GameTimer, QtScheduler, Scheduler, TaskHandle

logger = logging.getLogger(__name__)

STATS_KEY = "brain_cubes_stats"
METRICS_KEY = "brain_cubes_metrics"
HISTORY_KEY = "brain_cubes_history"
PROFILE_KEY = "brain_cubes_profile"
LEVEL_NUMBER_KEY = "brain_cubes_level_number"
SAVED_GAME_KEY = "brain_cubes_saved_game_state"

ALL_KEYS = (STATS_KEY, METRICS_KEY, HISTORY_KEY, PROFILE_KEY, LEVEL_NUMBER_KEY, SAVED_GAME_KEY)

_PARSE_ERRORS = (ValueError, TypeError, KeyError, AttributeError, OverflowError)


class SessionPhase(str, Enum):
    IDLE = "idle"
    READY = "ready"
    ACTIVE = "active"
    PAUSED = "paused"
    RESOLVED = "resolved"


class GameSession:
    """Owns one player's game: the level attempt in progress and the save file.

    Every mutation goes through the action methods; readers get immutable
    ``GameState`` snapshots and are told about changes via ``subscribe``.
    All callbacks (timer ticks, deferred completions, saves) run on the
    scheduler's event loop, so no locking is needed.

    Attempts are numbered by a generation counter. A deferred win/loss carries
    the generation it was scheduled for and is dropped if that attempt has
    been superseded; ``complete_level`` records each generation at most once.
    """

    def __init__(
        self,
        store: ProgressStore,
        generator: Optional[LevelGenerator] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Clock = time.time,
        config: Optional[GameConfig] = None,
    ) -> None:
        self._store = store
        self._generator = generator or LevelGenerator()
        self._scheduler = scheduler or QtScheduler()
        self._clock = clock
        self._config = config or GameConfig()
        self._timer = GameTimer(self._scheduler, clock, self._config.tick_interval_ms)

        self._state = GameState()
        self._stats = create_initial_stats()
        self._metrics = create_initial_skill_metrics()
        self._history: List[LevelResult] = []
        self._profile = PlayerProfile()
        self._level_number = 1
        self._last_result: Optional[LevelResult] = None
        self._loaded = False

        self._generation = 0
        self._resolved_generation: Optional[int] = None
        self._pending: Optional[TaskHandle] = None
        self._pending_won = False
        self._save_task: Optional[TaskHandle] = None
        self._observers: List[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def level_number(self) -> int:
        return self._level_number

    @property
    def stats(self) -> PlayerStats:
        return self._stats

    @property
    def metrics(self) -> SkillMetrics:
        return self._metrics

    @property
    def level_history(self) -> Tuple[LevelResult, ...]:
        return tuple(self._history)

    @property
    def profile(self) -> PlayerProfile:
        return replace(self._profile)

    @property
    def last_result(self) -> Optional[LevelResult]:
        return self._last_result

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def has_saved_game(self) -> bool:
        return self._state.current_level is not None and not self._state.is_playing

    @property
    def completion_pending(self) -> bool:
        return self._pending is not None

    @property
    def attempts_left(self) -> int:
        level = self._state.current_level
        if level is None:
            return 0
        return max(0, level.max_attempts - len(self._state.current_guesses))

    @property
    def time_remaining(self) -> Optional[int]:
        level = self._state.current_level
        if level is None or not level.time_limit:
            return None
        return max(0, level.time_limit - self._state.elapsed_time)

    @property
    def phase(self) -> SessionPhase:
        state = self._state
        if state.current_level is None:
            return SessionPhase.IDLE
        if state.is_playing:
            return SessionPhase.PAUSED if state.is_paused else SessionPhase.ACTIVE
        if self._attempt_finished():
            return SessionPhase.RESOLVED
        return SessionPhase.READY

    def subscribe(self, callback: Callable[[], None]) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def unsubscribe(self, callback: Callable[[], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def start_new_game(self) -> None:
        if not self._ready_for("start_new_game"):
            return
        self._settle_pending()
        level = self._generator.generate_level(1, self._metrics)
        self._level_number = 1
        logger.info("Starting new game (mode=%s, seed=%d)", level.game_mode.value, level.seed)
        self._begin_attempt(level)

    def continue_game(self) -> None:
        if not self._ready_for("continue_game"):
            return
        self._settle_pending()
        state = self._state
        if state.current_level is None:
            self.start_new_game()
            return
        if state.is_playing:
            return
        if self._attempt_finished():
            # nothing left to resume in a lost attempt; retry it
            self.restart_level()
            return
        logger.info("Resuming level %d at %ds", self._level_number, state.elapsed_time)
        self._resume_timer()

    def make_guess(self, guess: int) -> GuessResult:
        state = self._state
        level = state.current_level
        now = self._clock()
        if (
            not self._loaded
            or level is None
            or not state.is_playing
            or state.is_paused
            or self._pending is not None
            or self._resolved_generation == self._generation
        ):
            logger.debug("Ignoring guess %d: session is not active", guess)
            return GuessResult(guess=guess, feedback=Feedback.LOWER, timestamp=now)

        if guess == level.target_number:
            result = GuessResult(guess=guess, feedback=Feedback.CORRECT, timestamp=now)
            self._state = state.evolve(current_guesses=state.current_guesses + (result,))
            self._schedule_completion(won=True)
        else:
            remaining = level.max_attempts - len(state.current_guesses) - 1
            hint = get_hint(guess, level.target_number, level.hint_style, remaining)
            result = GuessResult(
                guess=guess,
                feedback=hint.feedback,
                timestamp=now,
                hint=hint.hint,
                penalty=hint.penalty,
            )
            self._state = state.evolve(current_guesses=state.current_guesses + (result,))
            if len(self._state.current_guesses) >= level.max_attempts:
                self._schedule_completion(won=False)

        self._changed()
        return result

    def complete_level(self, won: bool) -> Optional[LevelResult]:
        """Record the current attempt as won or lost.

        Applies once per attempt; later calls return ``None``. A win
        materializes the next level right away, a loss leaves the failed
        level loaded for ``restart_level``.
        """
        state = self._state
        level = state.current_level
        if level is None or self._resolved_generation == self._generation:
            return None
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

        elapsed = self._current_elapsed()
        self._timer.stop()
        self._resolved_generation = self._generation

        attempts_used = len(state.current_guesses)
        result = LevelResult(
            level_number=self._level_number,
            won=won,
            attempts_used=attempts_used,
            max_attempts=level.max_attempts,
            time_used=elapsed,
            time_limit=level.time_limit,
            accuracy=calculate_level_accuracy(attempts_used, level.max_attempts, level.range_size),
            game_mode=level.game_mode,
            target_number=level.target_number,
            guesses=state.current_guesses,
            completed_at=self._clock(),
        )
        self._history.append(result)
        self._stats = update_stats_with_result(self._stats, result)
        self._metrics = calculate_skill_metrics(self._stats, self._history)
        self._last_result = result
        logger.info(
            "Level %d %s in %d/%d attempts, %ds",
            result.level_number,
            "won" if won else "lost",
            attempts_used,
            level.max_attempts,
            elapsed,
        )

        if won:
            next_level = self._generator.generate_level(self._level_number + 1, self._metrics)
            self._level_number += 1
            self._generation += 1
            self._state = GameState(current_level=next_level)
        else:
            self._state = state.evolve(
                is_playing=False,
                is_paused=False,
                start_time=None,
                elapsed_time=elapsed,
            )
        self._changed()
        return result

    def pause_game(self) -> None:
        state = self._state
        if not state.is_playing or state.is_paused:
            return
        elapsed = self._current_elapsed()
        self._timer.stop()
        self._state = state.evolve(is_paused=True, start_time=None, elapsed_time=elapsed)
        logger.debug("Paused at %ds", elapsed)
        self._changed()

    def resume_game(self) -> None:
        state = self._state
        if not state.is_playing or not state.is_paused:
            return
        self._resume_timer()

    def restart_level(self) -> None:
        if not self._ready_for("restart_level"):
            return
        self._settle_pending()
        level = self._state.current_level
        if level is None:
            return
        new_level = self._generator.generate_level(self._level_number, self._metrics, level.seed + 1)
        logger.info("Restarting level %d (seed=%d)", self._level_number, new_level.seed)
        self._begin_attempt(new_level)

    def go_to_main_menu(self) -> None:
        elapsed = self._current_elapsed()
        self._timer.stop()
        self._state = self._state.evolve(
            is_playing=False,
            is_paused=False,
            start_time=None,
            elapsed_time=elapsed,
        )
        self._changed()

    def update_profile(self, **changes: Any) -> None:
        unknown = set(changes) - set(PROFILE_FIELDS)
        for key in sorted(unknown):
            logger.warning("Ignoring unknown profile field '%s'", key)
        known = {key: value for key, value in changes.items() if key in PROFILE_FIELDS}
        if not known:
            return
        self._profile = replace(self._profile, **known)
        self._changed()

    def reset_progress(self) -> None:
        """Erase the save file and return to a fresh player. Irreversible."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        if self._save_task is not None:
            self._save_task.cancel()
            self._save_task = None
        self._timer.stop()
        self._store.multi_remove(ALL_KEYS)

        self._stats = create_initial_stats()
        self._metrics = create_initial_skill_metrics()
        self._history = []
        self._level_number = 1
        self._last_result = None
        self._state = GameState()
        self._generation += 1
        self._resolved_generation = None
        logger.info("Progress reset")
        self._notify()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Restore the save file. Must run before the session accepts play.

        Each key falls back to its default on its own. A restored game is
        never running: the player has to continue it explicitly.
        """
        self._stats = self._load_key(STATS_KEY, PlayerStats.from_dict, create_initial_stats())
        self._metrics = self._load_key(METRICS_KEY, SkillMetrics.from_dict, create_initial_skill_metrics())
        self._history = self._load_key(
            HISTORY_KEY,
            lambda raw: [LevelResult.from_dict(item) for item in raw],
            [],
        )
        self._profile = self._load_key(PROFILE_KEY, PlayerProfile.from_dict, PlayerProfile())
        self._level_number = self._load_key(LEVEL_NUMBER_KEY, lambda raw: max(1, int(raw)), 1)

        saved = self._load_key(SAVED_GAME_KEY, GameState.from_dict, GameState())
        if saved.current_level is None:
            saved = GameState()
        self._state = saved.evolve(is_playing=False, is_paused=False, start_time=None)
        self._last_result = self._history[-1] if self._history else None
        self._loaded = True
        logger.info(
            "Loaded progress: level %d, %d results, saved game=%s",
            self._level_number,
            len(self._history),
            self.has_saved_game,
        )
        self._notify()

    def flush(self) -> None:
        """Write everything now instead of waiting for the deferred save."""
        if self._save_task is not None:
            self._save_task.cancel()
            self._save_task = None
        self._save_now()

    def shutdown(self) -> None:
        """Record any pending result, stop the clock and write the save file."""
        self._settle_pending()
        if self._state.is_playing:
            self.go_to_main_menu()
        self._timer.stop()
        if self._loaded:
            self.flush()

    def _load_key(self, key: str, parse: Callable[[Any], Any], default: Any) -> Any:
        text = self._store.get(key)
        if text is None:
            return default
        try:
            return parse(json.loads(text))
        except _PARSE_ERRORS as e:
            logger.warning("Discarding unreadable %s: %s", key, e)
            return default

    def _schedule_save(self) -> None:
        if not self._loaded or self._save_task is not None:
            return
        self._save_task = self._scheduler.call_later(0, self._save_now)

    def _save_now(self) -> None:
        self._save_task = None
        pairs = [
            (STATS_KEY, json.dumps(self._stats.to_dict())),
            (METRICS_KEY, json.dumps(self._metrics.to_dict())),
            (HISTORY_KEY, json.dumps([result.to_dict() for result in self._history])),
            (PROFILE_KEY, json.dumps(self._profile.to_dict())),
            (LEVEL_NUMBER_KEY, json.dumps(self._level_number)),
        ]
        if self._state.current_level is not None:
            pairs.append((SAVED_GAME_KEY, json.dumps(self._state.to_dict())))
            ok = self._store.multi_set(pairs)
        else:
            ok = self._store.multi_set(pairs) and self._store.remove(SAVED_GAME_KEY)
        if not ok:
            logger.debug("Save did not complete; keeping in-memory state")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ready_for(self, action: str) -> bool:
        if not self._loaded:
            logger.debug("Ignoring %s before progress is loaded", action)
        return self._loaded

    def _begin_attempt(self, level: LevelParams) -> None:
        self._timer.stop()
        self._generation += 1
        now = self._clock()
        self._state = GameState(
            current_level=level,
            current_guesses=(),
            is_playing=True,
            is_paused=False,
            start_time=now,
            elapsed_time=0,
        )
        self._timer.start(now, self._on_tick)
        self._changed()

    def _resume_timer(self) -> None:
        anchor = self._clock() - self._state.elapsed_time
        self._state = self._state.evolve(is_playing=True, is_paused=False, start_time=anchor)
        self._timer.start(anchor, self._on_tick)
        self._changed()

    def _current_elapsed(self) -> int:
        if self._timer.running:
            return max(self._state.elapsed_time, self._timer.elapsed())
        return self._state.elapsed_time

    def _attempt_finished(self) -> bool:
        state = self._state
        level = state.current_level
        if level is None:
            return False
        if self._resolved_generation == self._generation:
            return True
        if any(g.feedback is Feedback.CORRECT for g in state.current_guesses):
            return True
        if len(state.current_guesses) >= level.max_attempts:
            return True
        return bool(level.time_limit) and state.elapsed_time >= level.time_limit

    def _schedule_completion(self, won: bool) -> None:
        generation = self._generation
        self._pending_won = won
        self._pending = self._scheduler.call_later(
            self._config.completion_delay_ms,
            lambda: self._on_completion_due(generation, won),
        )

    def _on_completion_due(self, generation: int, won: bool) -> None:
        if generation != self._generation:
            logger.debug("Dropping stale completion for attempt %d", generation)
            return
        self._pending = None
        self.complete_level(won)

    def _settle_pending(self) -> None:
        if self._pending is None:
            return
        self._pending.cancel()
        self._pending = None
        self.complete_level(self._pending_won)

    def _on_tick(self, elapsed: int) -> None:
        state = self._state
        if not state.is_playing or state.is_paused:
            return
        if elapsed > state.elapsed_time:
            self._state = state.evolve(elapsed_time=elapsed)
        level = state.current_level
        if (
            level is not None
            and level.time_limit
            and self._state.elapsed_time >= level.time_limit
            and self._pending is None
            and self._resolved_generation != self._generation
        ):
            logger.info("Time limit of %ds reached on level %d", level.time_limit, self._level_number)
            self.complete_level(False)
            return
        self._changed()

    def _changed(self) -> None:
        self._schedule_save()
        self._notify()

    def _notify(self) -> None:
        for callback in list(self._observers):
            try:
                callback()
            except Exception:
                logger.exception("Session observer %r failed", callback)
