"""Deterministic color assignment for phases and sub-phases."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .models import Task, Theme, theme_from_string


@dataclass(frozen=True)
class Palette:
    """HSL parameters for one theme."""

    hue_offset: int
    phase_saturation: int
    phase_lightness: int
    sub_phase_saturation: int
    sub_phase_lightness: int


# Phases get darker, saturated colors; sub-phases lighter pastels
THEME_PALETTES: Dict[Theme, Palette] = {
    Theme.DARK: Palette(0, 90, 45, 70, 80),
    Theme.LIGHT: Palette(0, 75, 40, 65, 88),
    Theme.CATPPUCCIN: Palette(15, 70, 70, 55, 85),
    Theme.SOLARIZED_LIGHT: Palette(45, 65, 42, 50, 85),
    Theme.SOLARIZED_DARK: Palette(45, 70, 50, 45, 70),
    Theme.HIGH_CONTRAST: Palette(0, 100, 50, 100, 75),
    Theme.DRACULA: Palette(265, 85, 65, 60, 80),
    Theme.NORD: Palette(200, 40, 60, 30, 78),
}


@dataclass
class ColorAssignment:
    phase_colors: Dict[str, str]
    sub_phase_colors: Dict[str, str]

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            "phase_colors": dict(self.phase_colors),
            "sub_phase_colors": dict(self.sub_phase_colors),
        }


def generate_rainbow_color(
    index: int, total: int, saturation: int, lightness: int, hue_offset: int = 0
) -> str:
    """Spread ``total`` hues around the wheel and return the ``index``-th."""
    hue = int(math.floor(index / total * 360 + 0.5)) if total else 0
    hue = (hue + hue_offset) % 360 if hue_offset else hue
    return f"hsl({hue}, {saturation}%, {lightness}%)"


def _unique(labels: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(labels))


def _extend(
    existing: Mapping[str, str], labels: List[str], saturation: int, lightness: int, hue_offset: int
) -> Dict[str, str]:
    colors = dict(existing)
    for label in labels:
        if colors.get(label):
            continue
        # total grows with the map, so new labels never reuse an old slot
        colors[label] = generate_rainbow_color(
            len(colors), len(labels) + len(colors), saturation, lightness, hue_offset
        )
    return colors


def assign_colors(
    tasks: Iterable[Task],
    previous_phase_colors: Optional[Mapping[str, str]] = None,
    previous_sub_phase_colors: Optional[Mapping[str, str]] = None,
    theme: Union[Theme, str, None] = None,
) -> ColorAssignment:
    """Give every phase and sub-phase a color, keeping existing assignments."""
    palette = THEME_PALETTES[theme_from_string(theme)]
    tasks = list(tasks)

    phase_colors = _extend(
        previous_phase_colors or {},
        _unique(task.phase for task in tasks),
        palette.phase_saturation,
        palette.phase_lightness,
        palette.hue_offset,
    )
    sub_phase_colors = _extend(
        previous_sub_phase_colors or {},
        _unique(task.sub_phase for task in tasks),
        palette.sub_phase_saturation,
        palette.sub_phase_lightness,
        palette.hue_offset,
    )
    return ColorAssignment(phase_colors=phase_colors, sub_phase_colors=sub_phase_colors)
