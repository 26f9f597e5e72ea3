"""Player statistics and the skill signals derived from them.

The session treats ``PlayerStats`` and ``SkillMetrics`` as opaque values: it
hands them back to this module and to the level generator, nothing else.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Sequence

from brain_cubes.core.models import LevelResult

# Number of most recent results the metrics look at.
RECENT_WINDOW = 10


@dataclass(frozen=True)
class PlayerStats:
    levels_played: int = 0
    levels_won: int = 0
    levels_lost: int = 0
    total_attempts: int = 0
    total_time: int = 0
    current_streak: int = 0
    best_streak: int = 0
    highest_level: int = 0
    mode_wins: Dict[str, int] = field(default_factory=dict)

    @property
    def win_rate(self) -> float:
        if self.levels_played == 0:
            return 0.0
        return self.levels_won / self.levels_played

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PlayerStats":
        return cls(
            levels_played=int(raw.get("levels_played", 0)),
            levels_won=int(raw.get("levels_won", 0)),
            levels_lost=int(raw.get("levels_lost", 0)),
            total_attempts=int(raw.get("total_attempts", 0)),
            total_time=int(raw.get("total_time", 0)),
            current_streak=int(raw.get("current_streak", 0)),
            best_streak=int(raw.get("best_streak", 0)),
            highest_level=int(raw.get("highest_level", 0)),
            mode_wins={str(k): int(v) for k, v in dict(raw.get("mode_wins", {})).items()},
        )


@dataclass(frozen=True)
class SkillMetrics:
    """Proficiency signals, each in [0, 1]. ``rating`` drives level difficulty."""

    rating: float = 0.5
    accuracy: float = 0.5
    speed: float = 0.5
    consistency: float = 0.5
    recent_win_rate: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SkillMetrics":
        default = cls()
        return cls(**{
            name: _clamp(float(raw.get(name, getattr(default, name))))
            for name in default.to_dict()
        })


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def create_initial_stats() -> PlayerStats:
    return PlayerStats()


def create_initial_skill_metrics() -> SkillMetrics:
    return SkillMetrics()


def update_stats_with_result(stats: PlayerStats, result: LevelResult) -> PlayerStats:
    """Fold one finished attempt into the running totals."""
    mode_wins = dict(stats.mode_wins)
    if result.won:
        streak = stats.current_streak + 1
        mode_wins[result.game_mode.value] = mode_wins.get(result.game_mode.value, 0) + 1
    else:
        streak = 0
    return replace(
        stats,
        levels_played=stats.levels_played + 1,
        levels_won=stats.levels_won + (1 if result.won else 0),
        levels_lost=stats.levels_lost + (0 if result.won else 1),
        total_attempts=stats.total_attempts + result.attempts_used,
        total_time=stats.total_time + result.time_used,
        current_streak=streak,
        best_streak=max(stats.best_streak, streak),
        highest_level=max(stats.highest_level, result.level_number),
        mode_wins=mode_wins,
    )


def calculate_level_accuracy(attempts_used: int, max_attempts: int, range_size: int) -> float:
    """Score an attempt count in [0, 1].

    One attempt scores 1.0 and the full budget scores 0.0. Finishing within the
    optimal binary-search depth for ``range_size`` earns back half the gap.
    """
    if max_attempts <= 0 or attempts_used <= 0 or range_size <= 0:
        return 0.0
    if max_attempts == 1:
        return 1.0 if attempts_used <= 1 else 0.0
    linear = 1.0 - (attempts_used - 1) / (max_attempts - 1)
    optimal = max(1, math.ceil(math.log2(range_size)))
    if attempts_used <= optimal:
        linear += (1.0 - linear) * 0.5
    return _clamp(linear)


def calculate_skill_metrics(stats: PlayerStats, history: Sequence[LevelResult]) -> SkillMetrics:
    if not history:
        return create_initial_skill_metrics()
    recent = list(history)[-RECENT_WINDOW:]

    accuracy = sum(r.accuracy for r in recent) / len(recent)
    recent_win_rate = sum(1 for r in recent if r.won) / len(recent)

    speeds = []
    for r in recent:
        if r.time_limit:
            speeds.append(_clamp(1.0 - r.time_used / r.time_limit))
        else:
            # 60s without a clock counts as slow
            speeds.append(_clamp(1.0 - r.time_used / 60.0))
    speed = sum(speeds) / len(speeds)

    if len(recent) > 1:
        mean = accuracy
        variance = sum((r.accuracy - mean) ** 2 for r in recent) / len(recent)
        consistency = _clamp(1.0 - 2.0 * math.sqrt(variance))
    else:
        consistency = 0.5

    rating = _clamp(
        0.4 * accuracy
        + 0.3 * recent_win_rate
        + 0.1 * speed
        + 0.1 * consistency
        + 0.1 * stats.win_rate
    )
    return SkillMetrics(
        rating=round(rating, 4),
        accuracy=round(accuracy, 4),
        speed=round(speed, 4),
        consistency=round(consistency, 4),
        recent_win_rate=round(recent_win_rate, 4),
    )
