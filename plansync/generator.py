"""Implementation Plan generator.

Writes a task list back out as canonical plan text. Every board mutation
regenerates the whole document from the task list, so the output has to be
deterministic: statuses in column order, phases in first-seen order and
tasks in list order within a phase.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from .models import KANBAN_COLUMNS, Task, TaskStatus

logger = logging.getLogger("plansync.generator")


def format_task_line(task: Task) -> str:
    return f"- {task.sub_phase}, {task.id}, {task.description}, {task.priority.value}"


def group_by_phase(tasks: Iterable[Task]) -> Dict[str, List[Task]]:
    """Bucket tasks by phase, keeping the order phases first appear in."""
    grouped: Dict[str, List[Task]] = {}
    for task in tasks:
        grouped.setdefault(task.phase, []).append(task)
    return grouped


def generate_implementation_plan_text(tasks: Iterable[Task]) -> str:
    """Render tasks as plan text. Placeholder-id tasks are never written."""
    by_status: Dict[TaskStatus, List[Task]] = {}
    skipped = 0
    for task in tasks:
        if task.is_placeholder:
            skipped += 1
            continue
        by_status.setdefault(task.status, []).append(task)

    lines: List[str] = []
    for status in KANBAN_COLUMNS:
        status_tasks = by_status.get(status)
        if not status_tasks:
            continue
        lines.append(f"# {status.value}")
        for phase, phase_tasks in group_by_phase(status_tasks).items():
            lines.append(f"## {phase}")
            lines.extend(format_task_line(task) for task in phase_tasks)
            lines.append("")

    if skipped:
        logger.debug("Left %d placeholder tasks out of the generated plan", skipped)

    return "\n".join(lines).rstrip() + "\n"
