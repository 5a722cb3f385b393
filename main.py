"""MCP server exposing the PlanSync plan/board synchronization engine."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from plansync.colors import assign_colors as _assign_colors
from plansync.generator import generate_implementation_plan_text
from plansync.merge import merge_tasks as _merge_tasks
from plansync.models import CommentStatus, Task
from plansync.parser import parse_implementation_plan
from plansync.plansync_logging import setup_logging
from plansync.workflow import ProjectManager

mcp = FastMCP("plansync")

LOG_LEVEL_ENV = "PLANSYNC_LOG_LEVEL"
LOG_FILE_ENV = "PLANSYNC_LOG_FILE"

manager = ProjectManager()


def _configure_logging() -> None:
    log_file = os.getenv(LOG_FILE_ENV)
    setup_logging(
        log_level=os.getenv(LOG_LEVEL_ENV, "INFO").upper(),
        log_file=Path(log_file).expanduser() if log_file else None,
    )


def _tasks_from_dicts(items: Optional[List[Dict[str, Any]]]) -> List[Task]:
    return [Task.from_dict(item) for item in items or []]


# ----------------------------------------------------------------------
# Stateless engine tools
# ----------------------------------------------------------------------


@mcp.tool()
def parse_plan(text: str) -> Dict[str, Any]:
    """Parse implementation plan text into task records.

    Grammar: '# <Status>' headings, '## <Phase>' headings and
    '- <SubPhase>, <TaskId>, <Description>, <Priority>' task lines.
    Lines without an id get a transient 'partial-<line>' id."""

    tasks = parse_implementation_plan(text)
    return {"tasks": [task.to_dict() for task in tasks], "count": len(tasks)}


@mcp.tool()
def generate_plan(tasks: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Render task records as canonical implementation plan text.
    Placeholder ('partial-') tasks are left out."""

    return {"implementation_plan": generate_implementation_plan_text(_tasks_from_dicts(tasks))}


@mcp.tool()
def merge_tasks(parsed: List[Dict[str, Any]], previous: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Carry sub-project links from a previous task list onto freshly parsed tasks."""

    merged = _merge_tasks(_tasks_from_dicts(parsed), _tasks_from_dicts(previous))
    return {"tasks": [task.to_dict() for task in merged]}


@mcp.tool()
def assign_colors(
    tasks: List[Dict[str, Any]],
    phase_colors: Optional[Dict[str, str]] = None,
    sub_phase_colors: Optional[Dict[str, str]] = None,
    theme: str = "dark",
) -> Dict[str, Dict[str, str]]:
    """Assign colors to new phases and sub-phases, keeping existing ones."""

    return _assign_colors(_tasks_from_dicts(tasks), phase_colors, sub_phase_colors, theme).to_dict()


# ----------------------------------------------------------------------
# Project tools
# ----------------------------------------------------------------------


@mcp.tool()
def create_project(name: str, implementation_plan: Optional[str] = None, theme: Optional[str] = None) -> Dict[str, Any]:
    """Create a project. Without a plan it starts from a single starter task."""

    return manager.create_project(name, implementation_plan=implementation_plan, theme=theme)


@mcp.tool()
def list_projects() -> Dict[str, Any]:
    """List the projects held by this server, flagging sub-projects."""

    return manager.list_projects()


@mcp.tool()
def get_project(project_id: str) -> Dict[str, Any]:
    """Return a project's documents, tasks, colors and board columns."""

    return manager.get_project(project_id)


@mcp.tool()
def delete_project(project_id: str) -> Dict[str, Any]:
    """Delete a project."""

    return manager.delete_project(project_id)


@mcp.tool()
def sync_plan(project_id: str, text: str) -> Dict[str, Any]:
    """Replace a project's implementation plan and update its board from it.
    Sub-project links survive as long as the task id stays in the text."""

    return manager.sync_plan(project_id, text)


@mcp.tool()
def create_task(
    project_id: str,
    task_id: str,
    description: str,
    phase: str,
    sub_phase: str,
    priority: str = "Medium",
    status: str = "Backlog",
) -> Dict[str, Any]:
    """Create a task (for example from selected text) and regenerate the plan.
    The task id must be unique within the project; see suggest_task_id."""

    return manager.create_task(project_id, task_id, description, phase, sub_phase, priority, status)


@mcp.tool()
def update_task(
    project_id: str,
    task_id: str,
    description: Optional[str] = None,
    status: Optional[str] = None,
    phase: Optional[str] = None,
    sub_phase: Optional[str] = None,
    priority: Optional[str] = None,
) -> Dict[str, Any]:
    """Edit a task's fields and regenerate the plan."""

    changes = {
        key: value
        for key, value in {
            "description": description,
            "status": status,
            "phase": phase,
            "sub_phase": sub_phase,
            "priority": priority,
        }.items()
        if value is not None
    }
    return manager.update_task(project_id, task_id, **changes)


@mcp.tool()
def move_task(project_id: str, task_id: str, status: str) -> Dict[str, Any]:
    """Move a task to another column (Backlog, To-Do, In Progress, Review, Done, Future)."""

    return manager.move_task(project_id, task_id, status)


@mcp.tool()
def delete_task(project_id: str, task_id: str) -> Dict[str, Any]:
    """Delete a task and its comments, then regenerate the plan."""

    return manager.delete_task(project_id, task_id)


@mcp.tool()
def update_document(project_id: str, doc_type: str, content: str) -> Dict[str, Any]:
    """Replace one of a project's documents: 'planning', 'implementation' or 'scratchpad'.
    Replacing the implementation plan updates the board from the new text."""

    return manager.update_document(project_id, doc_type, content)


@mcp.tool()
def add_comment(project_id: str, task_id: str, content: str) -> Dict[str, Any]:
    """Add an active comment to a task on the board."""

    return manager.add_comment(project_id, task_id, content)


@mcp.tool()
def resolve_comment(project_id: str, comment_id: str) -> Dict[str, Any]:
    """Mark a comment as resolved."""

    return manager.set_comment_status(project_id, comment_id, CommentStatus.RESOLVED.value)


@mcp.tool()
def discard_comment(project_id: str, comment_id: str) -> Dict[str, Any]:
    """Mark a comment as discarded."""

    return manager.set_comment_status(project_id, comment_id, CommentStatus.DISCARDED.value)


@mcp.tool()
def delete_comment(project_id: str, comment_id: str) -> Dict[str, Any]:
    """Delete a comment."""

    return manager.delete_comment(project_id, comment_id)


@mcp.tool()
def list_comments(project_id: str, task_id: Optional[str] = None) -> Dict[str, Any]:
    """List a project's comments, newest first, optionally for one task only."""

    return manager.list_comments(project_id, task_id)


@mcp.tool()
def open_sub_project(project_id: str, task_id: str) -> Dict[str, Any]:
    """Open the sub-project linked to a task, creating and linking it if needed."""

    return manager.open_sub_project(project_id, task_id)


@mcp.tool()
def suggest_task_id(project_id: str, sub_phase: str) -> Dict[str, Any]:
    """Suggest the next sequential task id (PREFIX-NN) for a sub-phase."""

    return manager.suggest_task_id(project_id, sub_phase)


@mcp.tool()
def suggest_sub_phases(project_id: str, prefix: str) -> Dict[str, Any]:
    """Autocomplete a sub-phase name from those already used in the project."""

    return manager.suggest_sub_phases(project_id, prefix)


@mcp.tool()
def project_status(project_id: str) -> Dict[str, Any]:
    """Summarize task counts per column and priority."""

    return manager.project_status(project_id)


@mcp.resource("plansync://projects")
def resource_projects() -> str:
    """Resource view listing the projects held by this server."""

    projects = manager.list_projects()["projects"]
    if not projects:
        return "No projects have been created yet."

    lines = ["PlanSync Projects"]
    for project in projects:
        lines.append("")
        suffix = " (sub-project)" if project["is_sub_project"] else ""
        lines.append(f"- {project['id']}: {project['name']}{suffix}")
        lines.append(f"  Tasks: {project['task_count']}")
    return "\n".join(lines)


if __name__ == "__main__":
    _configure_logging()
    mcp.run(transport="stdio")
