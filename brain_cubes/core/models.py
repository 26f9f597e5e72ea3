"""Value types shared by the session, the level generator and the skill model."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class GameMode(str, Enum):
    CLASSIC = "classic"
    DEPTH = "depth"
    STRATEGIC = "strategic"
    TACTICAL = "tactical"
    DEUS = "deus"


class HintStyle(str, Enum):
    BASIC = "basic"
    DISTANCE = "distance"
    PARITY = "parity"
    TEMPERATURE = "temperature"
    CRYPTIC = "cryptic"


class Feedback(str, Enum):
    CORRECT = "correct"
    HIGHER = "higher"
    LOWER = "lower"


@dataclass(frozen=True)
class LevelParams:
    """A generated challenge. Never mutated once created."""

    game_mode: GameMode
    target_number: int
    range_min: int
    range_max: int
    max_attempts: int
    hint_style: HintStyle
    seed: int
    time_limit: Optional[int] = None

    @property
    def range_size(self) -> int:
        return self.range_max - self.range_min + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game_mode": self.game_mode.value,
            "target_number": self.target_number,
            "range_min": self.range_min,
            "range_max": self.range_max,
            "max_attempts": self.max_attempts,
            "time_limit": self.time_limit,
            "hint_style": self.hint_style.value,
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "LevelParams":
        time_limit = raw.get("time_limit")
        level = cls(
            game_mode=GameMode(raw["game_mode"]),
            target_number=int(raw["target_number"]),
            range_min=int(raw["range_min"]),
            range_max=int(raw["range_max"]),
            max_attempts=int(raw["max_attempts"]),
            hint_style=HintStyle(raw["hint_style"]),
            seed=int(raw["seed"]),
            time_limit=int(time_limit) if time_limit is not None else None,
        )
        if level.range_min >= level.range_max:
            raise ValueError(f"invalid range [{level.range_min}, {level.range_max}]")
        if not level.range_min <= level.target_number <= level.range_max:
            raise ValueError(f"target {level.target_number} outside range")
        if level.max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        return level


@dataclass(frozen=True)
class GuessResult:
    guess: int
    feedback: Feedback
    timestamp: float
    hint: Optional[str] = None
    penalty: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "guess": self.guess,
            "feedback": self.feedback.value,
            "hint": self.hint,
            "penalty": self.penalty,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "GuessResult":
        penalty = raw.get("penalty")
        return cls(
            guess=int(raw["guess"]),
            feedback=Feedback(raw["feedback"]),
            timestamp=float(raw.get("timestamp", 0.0)),
            hint=raw.get("hint"),
            penalty=float(penalty) if penalty is not None else None,
        )


@dataclass(frozen=True)
class GameState:
    """Snapshot of the in-progress attempt handed out to readers.

    ``start_time`` is only set while the timer is accruing
    (``is_playing and not is_paused``).
    """

    current_level: Optional[LevelParams] = None
    current_guesses: Tuple[GuessResult, ...] = ()
    is_playing: bool = False
    is_paused: bool = False
    start_time: Optional[float] = None
    elapsed_time: int = 0

    def evolve(self, **changes: Any) -> "GameState":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_level": self.current_level.to_dict() if self.current_level else None,
            "current_guesses": [g.to_dict() for g in self.current_guesses],
            "is_playing": self.is_playing,
            "is_paused": self.is_paused,
            "start_time": self.start_time,
            "elapsed_time": self.elapsed_time,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "GameState":
        level_raw = raw.get("current_level")
        level = LevelParams.from_dict(level_raw) if level_raw else None
        guesses = tuple(GuessResult.from_dict(g) for g in raw.get("current_guesses", []))
        if level is not None and len(guesses) > level.max_attempts:
            raise ValueError("saved game has more guesses than attempts")
        start_time = raw.get("start_time")
        return cls(
            current_level=level,
            current_guesses=guesses,
            is_playing=bool(raw.get("is_playing", False)),
            is_paused=bool(raw.get("is_paused", False)),
            start_time=float(start_time) if start_time is not None else None,
            elapsed_time=max(0, int(raw.get("elapsed_time", 0))),
        )


@dataclass(frozen=True)
class LevelResult:
    """Archived outcome of one attempt."""

    level_number: int
    won: bool
    attempts_used: int
    max_attempts: int
    time_used: int
    accuracy: float
    game_mode: GameMode
    target_number: int
    completed_at: float
    time_limit: Optional[int] = None
    guesses: Tuple[GuessResult, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level_number": self.level_number,
            "won": self.won,
            "attempts_used": self.attempts_used,
            "max_attempts": self.max_attempts,
            "time_used": self.time_used,
            "time_limit": self.time_limit,
            "accuracy": self.accuracy,
            "game_mode": self.game_mode.value,
            "target_number": self.target_number,
            "guesses": [g.to_dict() for g in self.guesses],
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "LevelResult":
        time_limit = raw.get("time_limit")
        return cls(
            level_number=int(raw["level_number"]),
            won=bool(raw["won"]),
            attempts_used=int(raw["attempts_used"]),
            max_attempts=int(raw["max_attempts"]),
            time_used=int(raw.get("time_used", 0)),
            accuracy=float(raw.get("accuracy", 0.0)),
            game_mode=GameMode(raw["game_mode"]),
            target_number=int(raw["target_number"]),
            completed_at=float(raw.get("completed_at", 0.0)),
            time_limit=int(time_limit) if time_limit is not None else None,
            guesses=tuple(GuessResult.from_dict(g) for g in raw.get("guesses", [])),
        )


@dataclass
class PlayerProfile:
    display_name: str = "Player"
    avatar_id: int = 0
    sound_enabled: bool = True
    haptics_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "display_name": self.display_name,
            "avatar_id": self.avatar_id,
            "sound_enabled": self.sound_enabled,
            "haptics_enabled": self.haptics_enabled,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PlayerProfile":
        default = cls()
        return cls(
            display_name=str(raw.get("display_name", default.display_name)),
            avatar_id=int(raw.get("avatar_id", default.avatar_id)),
            sound_enabled=bool(raw.get("sound_enabled", default.sound_enabled)),
            haptics_enabled=bool(raw.get("haptics_enabled", default.haptics_enabled)),
        )


PROFILE_FIELDS = tuple(PlayerProfile.__dataclass_fields__)
