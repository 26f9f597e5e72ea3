from __future__ import annotations

import math
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from brain_cubes.core.models import Feedback, GameMode, HintStyle, LevelParams
from brain_cubes.core.skill import SkillMetrics

MIN_RANGE_SIZE = 10
MIN_TIME_LIMIT = 10


@dataclass(frozen=True)
class ModeSpec:
    mode: GameMode
    unlock_level: int
    hint_style: HintStyle
    base_range: int
    growth: float
    attempt_slack: int
    offset: bool = False
    time_per_attempt: Optional[float] = None


@dataclass(frozen=True)
class Hint:
    feedback: Feedback
    hint: Optional[str] = None
    penalty: Optional[float] = None


def default_modes_path() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "modes.yaml"


class LevelGenerator:
    """Builds ``LevelParams`` from a level number and the player's skill.

    Output is a pure function of (level, skill metrics, seed): every random
    draw comes from a ``random.Random`` seeded with the level seed.
    """

    def __init__(self, modes_path: Optional[Path] = None) -> None:
        self._modes_path = modes_path or default_modes_path()
        self._modes = self._load_modes()

    def modes(self) -> List[ModeSpec]:
        return list(self._modes.values())

    def mode_for_level(self, level: int) -> ModeSpec:
        unlocked = [spec for spec in self._modes.values() if spec.unlock_level <= level]
        if not unlocked:
            unlocked = [min(self._modes.values(), key=lambda s: s.unlock_level)]
        return unlocked[(level - 1) % len(unlocked)]

    def derive_seed(self, level: int, metrics: SkillMetrics) -> int:
        return level * 7919 + round(metrics.rating * 1000)

    def generate_level(
        self,
        level: int,
        metrics: SkillMetrics,
        seed: Optional[int] = None,
    ) -> LevelParams:
        level = max(1, int(level))
        if seed is None:
            seed = self.derive_seed(level, metrics)
        rng = random.Random(seed)
        spec = self.mode_for_level(level)
        rating = max(0.0, min(1.0, metrics.rating))

        range_size = spec.base_range * (1 + spec.growth * (level - 1)) * (0.75 + 0.5 * rating)
        range_size = max(MIN_RANGE_SIZE, int(range_size))
        range_min = rng.randint(1, range_size) if spec.offset else 1
        range_max = range_min + range_size - 1
        target = rng.randint(range_min, range_max)

        attempts = math.ceil(math.log2(range_size)) + spec.attempt_slack
        if rating >= 0.8:
            attempts -= 1
        attempts = max(1, attempts)

        time_limit = None
        if spec.time_per_attempt:
            time_limit = round(attempts * spec.time_per_attempt * (1.25 - 0.5 * rating))
            time_limit = max(MIN_TIME_LIMIT, time_limit)

        return LevelParams(
            game_mode=spec.mode,
            target_number=target,
            range_min=range_min,
            range_max=range_max,
            max_attempts=attempts,
            hint_style=spec.hint_style,
            seed=seed,
            time_limit=time_limit,
        )

    def _load_modes(self) -> Dict[GameMode, ModeSpec]:
        path = self._modes_path
        if not path.exists():
            raise FileNotFoundError(f"Mode table not found: {path}")
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not raw or not isinstance(raw, dict):
            raise ValueError(f"{path.name}: expected a mapping of game modes")

        modes: Dict[GameMode, ModeSpec] = {}
        for name, entry in raw.items():
            try:
                mode = GameMode(name)
            except ValueError:
                raise ValueError(f"{path.name}: unknown game mode '{name}'") from None
            if not isinstance(entry, dict):
                raise ValueError(f"{path.name}: '{name}' must be a mapping")
            try:
                time_per_attempt = entry.get("time_per_attempt")
                spec = ModeSpec(
                    mode=mode,
                    unlock_level=int(entry.get("unlock_level", 1)),
                    hint_style=HintStyle(entry["hint_style"]),
                    base_range=int(entry["base_range"]),
                    growth=float(entry.get("growth", 0.0)),
                    attempt_slack=int(entry.get("attempt_slack", 0)),
                    offset=bool(entry.get("offset", False)),
                    time_per_attempt=float(time_per_attempt) if time_per_attempt else None,
                )
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"{path.name}: invalid entry for '{name}': {e}") from e
            if spec.base_range < 2:
                raise ValueError(f"{path.name}: '{name}' base_range must be at least 2")
            modes[mode] = spec

        if not modes:
            raise ValueError(f"{path.name}: no game modes defined")
        return dict(sorted(modes.items(), key=lambda kv: kv[1].unlock_level))


def _temperature(distance: int) -> str:
    if distance <= 3:
        return "Burning"
    if distance <= 10:
        return "Hot"
    if distance <= 25:
        return "Warm"
    return "Cold"


def _distance(distance: int) -> str:
    if distance <= 5:
        return "Within 5"
    if distance <= 20:
        return "Within 20"
    return "More than 20 away"


def get_hint(guess: int, target: int, hint_style: HintStyle, attempts_remaining: int) -> Hint:
    """Direction for a wrong guess, plus a style-specific phrase.

    ``higher`` means the target is above the guess. The last attempt gets the
    direction only.
    """
    feedback = Feedback.HIGHER if guess < target else Feedback.LOWER
    if attempts_remaining <= 0:
        return Hint(feedback=feedback)

    distance = abs(target - guess)
    phrase: Optional[str] = None
    penalty: Optional[float] = None
    if hint_style is HintStyle.DISTANCE:
        phrase = _distance(distance)
    elif hint_style is HintStyle.PARITY:
        phrase = "The number is even" if target % 2 == 0 else "The number is odd"
    elif hint_style is HintStyle.TEMPERATURE:
        phrase = _temperature(distance)
        penalty = 1.0
    elif hint_style is HintStyle.CRYPTIC:
        phrase = f"Its digits sum to {sum(int(d) for d in str(abs(target)))}"
        penalty = 1.0
    return Hint(feedback=feedback, hint=phrase, penalty=penalty)
