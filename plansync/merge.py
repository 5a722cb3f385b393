"""Reconciliation merge between a fresh parse and the previous task list.

Reparsing the plan rebuilds every task from text, which would drop fields
the text cannot express. The merge carries those fields forward by task id.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Mapping

from .models import Task

# Task fields with no representation in the plan text
OUT_OF_BAND_FIELDS = ("sub_project_id",)


def merge_tasks(freshly_parsed: Iterable[Task], previous: Iterable[Task]) -> List[Task]:
    """Return the parsed tasks with out-of-band fields restored from
    ``previous``.

    The result has the same length and order as ``freshly_parsed``. Tasks
    that no longer appear in the text are dropped simply by not being in it.
    When ``previous`` holds duplicate ids the first one wins.
    """
    by_id: Dict[str, Task] = {}
    for task in previous:
        by_id.setdefault(task.id, task)

    merged: List[Task] = []
    for task in freshly_parsed:
        prior = by_id.get(task.id)
        if prior is None:
            merged.append(task)
            continue
        carried = {name: getattr(prior, name) for name in OUT_OF_BAND_FIELDS}
        merged.append(replace(task, **carried))
    return merged


def has_changes(
    merged: List[Task],
    previous: List[Task],
    phase_colors: Mapping[str, str],
    previous_phase_colors: Mapping[str, str],
    sub_phase_colors: Mapping[str, str],
    previous_sub_phase_colors: Mapping[str, str],
) -> bool:
    """Whether a merge result differs from the committed state."""
    return (
        merged != previous
        or dict(phase_colors) != dict(previous_phase_colors)
        or dict(sub_phase_colors) != dict(previous_sub_phase_colors)
    )
