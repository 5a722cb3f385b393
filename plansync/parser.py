"""Implementation Plan parser.

The plan is a loose three-level outline::

    # <Status>
    ## <Phase>
    - <SubPhase>, <TaskId>, <Description>, <Priority>

Parsing is a single stateful pass over the lines. It never fails: lines it
does not recognize are skipped and incomplete task lines still produce a
task so a board can follow the text while it is being typed.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from .models import (
    DEFAULT_PHASE,
    DEFAULT_STATUS,
    PLACEHOLDER_DESCRIPTION,
    Task,
    TaskStatus,
    placeholder_id,
    priority_from_string,
    status_from_string,
)

logger = logging.getLogger("plansync.parser")

STATUS_MARKER = "# "
PHASE_MARKER = "## "
TASK_MARKER = "- "
FIELD_SEPARATOR = ","


def parse_task_line(body: str, line_index: int, status: TaskStatus, phase: str) -> Task:
    """Build a task from the text after a ``- `` marker.

    Fields past the fourth are dropped; commas are not escapable.
    """
    parts = [part.strip() for part in body.split(FIELD_SEPARATOR)]
    parts.extend([""] * (4 - len(parts)))
    sub_phase, task_id, description, priority = parts[:4]

    return Task(
        id=task_id or placeholder_id(line_index),
        description=description or PLACEHOLDER_DESCRIPTION,
        status=status,
        phase=phase,
        sub_phase=sub_phase,
        priority=priority_from_string(priority),
        line_index=line_index,
    )


def parse_implementation_plan(text: str) -> List[Task]:
    """Parse plan text into task records, in document order."""
    tasks: List[Task] = []
    current_status = DEFAULT_STATUS
    current_phase = DEFAULT_PHASE

    for line_index, line in enumerate(text.split("\n")):
        trimmed = line.strip()
        if trimmed.startswith(STATUS_MARKER):
            current_status = status_from_string(trimmed[len(STATUS_MARKER):].strip())
            current_phase = DEFAULT_PHASE
        elif trimmed.startswith(PHASE_MARKER):
            current_phase = trimmed[len(PHASE_MARKER):].strip()
        elif trimmed.startswith(TASK_MARKER):
            tasks.append(
                parse_task_line(trimmed[len(TASK_MARKER):], line_index, current_status, current_phase)
            )

    logger.debug("Parsed %d tasks from %d characters of plan text", len(tasks), len(text))
    return tasks


def suggest_sub_phases(tasks: Iterable[Task], prefix: str) -> List[str]:
    """Autocomplete a sub-phase from the ones already on the board.

    Matches are case-insensitive prefix matches in first-seen order; an
    exact match is left out since there is nothing to complete.
    """
    needle = prefix.strip().lower()
    if not needle:
        return []

    suggestions: List[str] = []
    for task in tasks:
        candidate = task.sub_phase
        lowered = candidate.lower()
        if candidate in suggestions or lowered == needle:
            continue
        if lowered.startswith(needle):
            suggestions.append(candidate)
    return suggestions
