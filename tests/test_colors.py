"""Tests for brain_cubes.ui.colors – palette and color blending."""

from __future__ import annotations

import pytest

from brain_cubes.core.models import GameMode
from brain_cubes.ui.colors import MODE_COLORS, GameColors, blend_hex, mode_color


# ===========================================================================
# Palette
# ===========================================================================

class TestPalette:
    def test_every_mode_has_a_color(self):
        assert set(MODE_COLORS) == set(GameMode)

    @pytest.mark.parametrize("mode", list(GameMode))
    def test_mode_colors_are_hex(self, mode: GameMode):
        color = mode_color(mode)
        assert color.startswith("#")
        assert len(color) == 7

    def test_semantic_colors(self):
        for color in (GameColors.SUCCESS, GameColors.ERROR, GameColors.WARNING):
            assert color.startswith("#")


# ===========================================================================
# blend_hex
# ===========================================================================

class TestBlendHex:
    def test_t_zero_returns_a(self):
        assert blend_hex("#FF0000", "#0000FF", 0.0) == "#FF0000"

    def test_t_one_returns_b(self):
        assert blend_hex("#FF0000", "#0000FF", 1.0) == "#0000FF"

    def test_midpoint(self):
        result = blend_hex("#000000", "#FFFFFF", 0.5)
        assert all(126 <= int(result[i:i + 2], 16) <= 128 for i in (1, 3, 5))

    def test_clamps_t(self):
        assert blend_hex("#000000", "#FFFFFF", 5) == "#FFFFFF"
        assert blend_hex("#000000", "#FFFFFF", -1) == "#000000"

    def test_invalid_input_returns_a(self):
        assert blend_hex("red", "#FFFFFF", 0.5) == "red"
        assert blend_hex("#GGGGGG", "#FFFFFF", 0.5) == "#GGGGGG"
