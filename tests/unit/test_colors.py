"""Unit tests for phase and sub-phase color assignment."""

import pytest

from plansync.colors import THEME_PALETTES, assign_colors, generate_rainbow_color
from plansync.models import Task, Theme


def tasks_for(*pairs):
    return [Task(id=f"T-{i}", description="d", phase=phase, sub_phase=sub)
            for i, (phase, sub) in enumerate(pairs)]


class TestGenerateRainbowColor:
    """Test cases for generate_rainbow_color."""

    def test_hue_spread(self):
        assert generate_rainbow_color(0, 4, 90, 45) == "hsl(0, 90%, 45%)"
        assert generate_rainbow_color(1, 4, 90, 45) == "hsl(90, 90%, 45%)"
        assert generate_rainbow_color(3, 4, 70, 80) == "hsl(270, 70%, 80%)"

    def test_hue_rounds_half_up(self):
        # 1/16 * 360 = 22.5
        assert generate_rainbow_color(1, 16, 90, 45) == "hsl(23, 90%, 45%)"

    def test_hue_offset_wraps(self):
        assert generate_rainbow_color(3, 4, 90, 45, hue_offset=100) == "hsl(10, 90%, 45%)"

    def test_zero_total(self):
        assert generate_rainbow_color(0, 0, 90, 45) == "hsl(0, 90%, 45%)"


class TestAssignColors:
    """Test cases for assign_colors."""

    def test_fresh_assignment_dark(self):
        result = assign_colors(tasks_for(("A", "x"), ("B", "y")), {}, {}, "dark")

        # second label: index 1, total = 2 unique + 1 already assigned
        assert result.phase_colors == {"A": "hsl(0, 90%, 45%)", "B": "hsl(120, 90%, 45%)"}
        assert result.sub_phase_colors == {"x": "hsl(0, 70%, 80%)", "y": "hsl(120, 70%, 80%)"}

    def test_existing_colors_preserved(self):
        existing = {"A": "hsl(200, 90%, 45%)"}

        result = assign_colors(tasks_for(("A", "x"), ("B", "x")), existing, {}, "dark")

        assert result.phase_colors["A"] == "hsl(200, 90%, 45%)"
        assert result.phase_colors["B"] == "hsl(120, 90%, 45%)"

    def test_previous_maps_not_mutated(self):
        existing = {"A": "red"}

        assign_colors(tasks_for(("B", "x")), existing, {}, "dark")

        assert existing == {"A": "red"}

    def test_labels_no_longer_used_keep_their_colors(self):
        result = assign_colors(tasks_for(("B", "x")), {"Old": "c"}, {"gone": "d"}, "dark")

        assert result.phase_colors["Old"] == "c"
        assert result.sub_phase_colors["gone"] == "d"

    def test_deterministic(self):
        tasks = tasks_for(("A", "x"), ("B", "y"), ("C", "x"))

        assert assign_colors(tasks, {}, {}, "nord") == assign_colors(tasks, {}, {}, "nord")

    @pytest.mark.parametrize("theme", list(Theme))
    def test_theme_parameters_used(self, theme):
        palette = THEME_PALETTES[theme]

        result = assign_colors(tasks_for(("A", "x")), {}, {}, theme)

        assert result.phase_colors["A"] == (
            f"hsl({palette.hue_offset}, {palette.phase_saturation}%, {palette.phase_lightness}%)"
        )
        assert result.sub_phase_colors["x"] == (
            f"hsl({palette.hue_offset}, {palette.sub_phase_saturation}%, {palette.sub_phase_lightness}%)"
        )

    def test_unknown_theme_uses_dark(self):
        tasks = tasks_for(("A", "x"))

        assert assign_colors(tasks, {}, {}, "neon") == assign_colors(tasks, {}, {}, "dark")

    def test_to_dict(self):
        result = assign_colors(tasks_for(("A", "x")))

        assert set(result.to_dict()) == {"phase_colors", "sub_phase_colors"}
