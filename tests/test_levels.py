"""Tests for brain_cubes.core.levels – level generation and hints."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from brain_cubes.core.levels import LevelGenerator, get_hint
from brain_cubes.core.models import Feedback, GameMode, HintStyle
from brain_cubes.core.skill import SkillMetrics


@pytest.fixture(scope="module")
def generator() -> LevelGenerator:
    return LevelGenerator()


def _write_modes(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "modes.yaml"
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Bundled mode table
# ---------------------------------------------------------------------------

class TestBundledModes:
    def test_all_modes_present(self, generator: LevelGenerator):
        assert [spec.mode for spec in generator.modes()] == [
            GameMode.CLASSIC,
            GameMode.DEPTH,
            GameMode.STRATEGIC,
            GameMode.TACTICAL,
            GameMode.DEUS,
        ]

    @pytest.mark.parametrize("level", [1, 2, 3, 4])
    def test_early_levels_are_classic(self, generator: LevelGenerator, level: int):
        assert generator.mode_for_level(level).mode is GameMode.CLASSIC

    def test_later_levels_rotate(self, generator: LevelGenerator):
        modes = {generator.mode_for_level(level).mode for level in range(25, 35)}
        assert modes == set(GameMode)

    def test_locked_modes_never_appear(self, generator: LevelGenerator):
        for level in range(1, 15):
            assert generator.mode_for_level(level).mode not in (GameMode.TACTICAL, GameMode.DEUS)


# ---------------------------------------------------------------------------
# generate_level
# ---------------------------------------------------------------------------

class TestGenerateLevel:
    @pytest.mark.parametrize("level", [1, 2, 5, 10, 17, 25, 40, 99])
    @pytest.mark.parametrize("rating", [0.0, 0.5, 1.0])
    def test_output_is_well_formed(self, generator: LevelGenerator, level: int, rating: float):
        params = generator.generate_level(level, SkillMetrics(rating=rating))
        assert params.range_min < params.range_max
        assert params.range_min <= params.target_number <= params.range_max
        assert params.max_attempts >= 1
        if params.time_limit is not None:
            assert params.time_limit >= 10

    def test_deterministic(self, generator: LevelGenerator):
        metrics = SkillMetrics(rating=0.6)
        assert generator.generate_level(8, metrics) == generator.generate_level(8, metrics)

    def test_seed_override(self, generator: LevelGenerator):
        params = generator.generate_level(3, SkillMetrics(), seed=1234)
        assert params.seed == 1234
        assert generator.generate_level(3, SkillMetrics(), seed=1234) == params

    def test_derived_seed(self, generator: LevelGenerator):
        params = generator.generate_level(2, SkillMetrics(rating=0.5))
        assert params.seed == 2 * 7919 + 500

    def test_seed_changes_target(self, generator: LevelGenerator):
        targets = {generator.generate_level(1, SkillMetrics(), seed=s).target_number for s in range(20)}
        assert len(targets) > 1

    def test_range_grows_with_level(self, generator: LevelGenerator):
        metrics = SkillMetrics()
        assert generator.generate_level(4, metrics).range_size > generator.generate_level(1, metrics).range_size

    def test_range_grows_with_skill(self, generator: LevelGenerator):
        low = generator.generate_level(3, SkillMetrics(rating=0.1))
        high = generator.generate_level(3, SkillMetrics(rating=0.9))
        assert high.range_size > low.range_size

    def test_classic_is_untimed(self, generator: LevelGenerator):
        assert generator.generate_level(1, SkillMetrics()).time_limit is None

    def test_tactical_is_timed(self, generator: LevelGenerator):
        level = next(n for n in range(15, 40) if generator.mode_for_level(n).mode is GameMode.TACTICAL)
        params = generator.generate_level(level, SkillMetrics())
        assert params.game_mode is GameMode.TACTICAL
        assert params.hint_style is HintStyle.TEMPERATURE
        assert params.time_limit is not None

    def test_level_below_one_clamped(self, generator: LevelGenerator):
        assert generator.generate_level(0, SkillMetrics()) == generator.generate_level(1, SkillMetrics())


# ---------------------------------------------------------------------------
# Mode table loading
# ---------------------------------------------------------------------------

class TestModeTable:
    def test_custom_table(self, tmp_path: Path):
        path = _write_modes(tmp_path, """
            classic:
              hint_style: parity
              base_range: 20
        """)
        gen = LevelGenerator(path)
        params = gen.generate_level(50, SkillMetrics())
        assert params.game_mode is GameMode.CLASSIC
        assert params.hint_style is HintStyle.PARITY

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            LevelGenerator(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path):
        with pytest.raises(ValueError):
            LevelGenerator(_write_modes(tmp_path, ""))

    def test_unknown_mode(self, tmp_path: Path):
        path = _write_modes(tmp_path, """
            arcade:
              hint_style: basic
              base_range: 20
        """)
        with pytest.raises(ValueError, match="unknown game mode"):
            LevelGenerator(path)

    def test_missing_hint_style(self, tmp_path: Path):
        path = _write_modes(tmp_path, """
            classic:
              base_range: 20
        """)
        with pytest.raises(ValueError, match="invalid entry"):
            LevelGenerator(path)

    def test_tiny_range_rejected(self, tmp_path: Path):
        path = _write_modes(tmp_path, """
            classic:
              hint_style: basic
              base_range: 1
        """)
        with pytest.raises(ValueError):
            LevelGenerator(path)


# ---------------------------------------------------------------------------
# get_hint
# ---------------------------------------------------------------------------

class TestGetHint:
    def test_direction(self):
        assert get_hint(50, 42, HintStyle.BASIC, 3).feedback is Feedback.LOWER
        assert get_hint(10, 42, HintStyle.BASIC, 3).feedback is Feedback.HIGHER

    def test_basic_has_no_phrase(self):
        hint = get_hint(10, 42, HintStyle.BASIC, 3)
        assert hint.hint is None
        assert hint.penalty is None

    def test_distance(self):
        assert get_hint(40, 42, HintStyle.DISTANCE, 3).hint == "Within 5"
        assert get_hint(30, 42, HintStyle.DISTANCE, 3).hint == "Within 20"
        assert get_hint(1, 42, HintStyle.DISTANCE, 3).hint == "More than 20 away"

    def test_parity(self):
        assert get_hint(1, 42, HintStyle.PARITY, 3).hint == "The number is even"
        assert get_hint(1, 43, HintStyle.PARITY, 3).hint == "The number is odd"

    def test_temperature_costs_a_penalty(self):
        hint = get_hint(41, 42, HintStyle.TEMPERATURE, 3)
        assert hint.hint == "Burning"
        assert hint.penalty == 1.0
        assert get_hint(1, 42, HintStyle.TEMPERATURE, 3).hint == "Cold"

    def test_cryptic(self):
        hint = get_hint(1, 42, HintStyle.CRYPTIC, 3)
        assert hint.hint == "Its digits sum to 6"
        assert hint.penalty == 1.0

    def test_last_attempt_direction_only(self):
        hint = get_hint(1, 42, HintStyle.CRYPTIC, 0)
        assert hint.feedback is Feedback.HIGHER
        assert hint.hint is None
        assert hint.penalty is None
