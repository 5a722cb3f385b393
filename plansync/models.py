"""Data models for PlanSync.

This module contains the core data structures shared by the plan parser,
generator and reconciliation merge: task records, the status and priority
vocabularies, color themes and the project that ties them together.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TaskStatus(str, Enum):
    """Workflow stages, one per Kanban column."""

    BACKLOG = "Backlog"
    TODO = "To-Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    DONE = "Done"
    FUTURE = "Future"


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    NONE = "None"


# Canonical column order, also the order statuses are written back to the plan
KANBAN_COLUMNS: List[TaskStatus] = [
    TaskStatus.BACKLOG,
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.DONE,
    TaskStatus.FUTURE,
]

DEFAULT_STATUS = TaskStatus.BACKLOG
DEFAULT_PRIORITY = Priority.NONE
DEFAULT_PHASE = "General"
PLACEHOLDER_DESCRIPTION = "..."
PLACEHOLDER_PREFIX = "partial-"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

_STATUS_LOOKUP: Dict[str, TaskStatus] = {
    _NON_ALNUM.sub("", status.value.lower()): status for status in TaskStatus
}
_PRIORITY_LOOKUP: Dict[str, Priority] = {
    priority.value.lower(): priority for priority in Priority
}


def status_from_string(value: Optional[str]) -> TaskStatus:
    """Map a heading such as ``to do`` or ``IN-PROGRESS`` to a status.

    Case, whitespace and punctuation are ignored. Anything unrecognized
    falls back to ``Backlog`` so half-typed headings never raise.
    """
    if isinstance(value, TaskStatus):
        return value
    key = _NON_ALNUM.sub("", (value or "").lower())
    return _STATUS_LOOKUP.get(key, DEFAULT_STATUS)


def priority_from_string(value: Optional[str]) -> Priority:
    """Map a priority field to a ``Priority``, defaulting to ``None``."""
    if isinstance(value, Priority):
        return value
    return _PRIORITY_LOOKUP.get((value or "").strip().lower(), DEFAULT_PRIORITY)


def placeholder_id(line_index: int) -> str:
    """Build the transient id given to a task line that has no id yet."""
    return f"{PLACEHOLDER_PREFIX}{line_index}"


def is_placeholder_id(task_id: str) -> bool:
    return task_id.startswith(PLACEHOLDER_PREFIX)


@dataclass(slots=True)
class Task:
    """A single task record, one per ``- sub, id, description, priority`` line.

    ``sub_project_id`` has no representation in the plan text and only
    survives a reparse through the reconciliation merge. ``line_index`` is
    the zero-based source line the task was parsed from (-1 when the task
    was created programmatically); it is positional metadata and takes no
    part in equality or serialization.
    """

    id: str
    description: str
    status: TaskStatus = DEFAULT_STATUS
    phase: str = DEFAULT_PHASE
    sub_phase: str = ""
    priority: Priority = DEFAULT_PRIORITY
    sub_project_id: Optional[str] = None
    line_index: int = field(default=-1, compare=False, repr=False)

    @property
    def is_placeholder(self) -> bool:
        return is_placeholder_id(self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "description": self.description,
            "status": self.status.value,
            "phase": self.phase,
            "sub_phase": self.sub_phase,
            "priority": self.priority.value,
            "sub_project_id": self.sub_project_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Create from dictionary representation.

        Status and priority go through the same fallback tables as the
        parser, so partially filled dictionaries are accepted.
        """
        return cls(
            id=str(data["id"]),
            description=data.get("description", PLACEHOLDER_DESCRIPTION),
            status=status_from_string(data.get("status")),
            phase=data.get("phase") or DEFAULT_PHASE,
            sub_phase=data.get("sub_phase", ""),
            priority=priority_from_string(data.get("priority")),
            sub_project_id=data.get("sub_project_id"),
        )

    def validate(self) -> List[str]:
        """Validate the task and return any issues."""
        issues = []

        if not self.id:
            issues.append("Task ID is required")
        elif self.is_placeholder:
            issues.append(f"Task ID '{self.id}' is a placeholder")
        if not self.description:
            issues.append("Description is required")
        if "\n" in self.description:
            issues.append("Description must be a single line")
        if not self.phase:
            issues.append("Phase is required")
        for name, value in (("id", self.id), ("sub-phase", self.sub_phase), ("description", self.description)):
            if "," in value:
                issues.append(f"Task {name} contains a comma and will not survive a reparse")

        return issues


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"
    CATPPUCCIN = "catppuccin"
    SOLARIZED_LIGHT = "solarized-light"
    SOLARIZED_DARK = "solarized-dark"
    HIGH_CONTRAST = "high-contrast"
    DRACULA = "dracula"
    NORD = "nord"


DEFAULT_THEME = Theme.DARK


def theme_from_string(value: Optional[str]) -> Theme:
    """Resolve a theme key, falling back to ``dark`` for unknown values."""
    if isinstance(value, Theme):
        return value
    try:
        return Theme((value or "").strip().lower())
    except ValueError:
        return DEFAULT_THEME


class CommentStatus(str, Enum):
    ACTIVE = "Active"
    RESOLVED = "Resolved"
    DISCARDED = "Discarded"


def comment_status_from_string(value: Optional[str]) -> CommentStatus:
    """Resolve a comment status case-insensitively.

    Unlike task statuses there is no fallback: comment statuses are only set
    through explicit requests, so an unknown value raises ``ValueError``.
    """
    if isinstance(value, CommentStatus):
        return value
    key = (value or "").strip().lower()
    for status in CommentStatus:
        if status.value.lower() == key:
            return status
    choices = ", ".join(status.value for status in CommentStatus)
    raise ValueError(f"Unknown comment status '{value}'. Expected one of: {choices}")


@dataclass(slots=True)
class Comment:
    """A note attached to a task on the board.

    Comments live on the project, not in the plan text, and refer to their
    task by id.
    """

    id: str
    task_id: str
    content: str
    created_at: str
    status: CommentStatus = CommentStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "content": self.content,
            "created_at": self.created_at,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=data["id"],
            task_id=data["task_id"],
            content=data.get("content", ""),
            created_at=data.get("created_at", ""),
            status=comment_status_from_string(data.get("status", CommentStatus.ACTIVE.value)),
        )


class DocumentType(str, Enum):
    """The three editable documents of a project."""

    PLANNING = "planning"
    IMPLEMENTATION = "implementation"
    SCRATCHPAD = "scratchpad"


def document_type_from_string(value: Optional[str]) -> DocumentType:
    if isinstance(value, DocumentType):
        return value
    try:
        return DocumentType((value or "").strip().lower())
    except ValueError:
        choices = ", ".join(doc_type.value for doc_type in DocumentType)
        raise ValueError(f"Unknown document type '{value}'. Expected one of: {choices}") from None


@dataclass(slots=True)
class Project:
    """A project: its documents, the task board derived from its plan, the
    comments on that board and the color maps used to render it."""

    id: str
    name: str
    implementation_plan: str = ""
    planning_document: str = ""
    scratchpad: str = ""
    tasks: List[Task] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    phase_colors: Dict[str, str] = field(default_factory=dict)
    sub_phase_colors: Dict[str, str] = field(default_factory=dict)
    theme: Theme = DEFAULT_THEME

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "implementation_plan": self.implementation_plan,
            "planning_document": self.planning_document,
            "scratchpad": self.scratchpad,
            "tasks": [task.to_dict() for task in self.tasks],
            "comments": [comment.to_dict() for comment in self.comments],
            "phase_colors": dict(self.phase_colors),
            "sub_phase_colors": dict(self.sub_phase_colors),
            "theme": self.theme.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Create from dictionary representation."""
        return cls(
            id=data["id"],
            name=data["name"],
            implementation_plan=data.get("implementation_plan", ""),
            planning_document=data.get("planning_document", ""),
            scratchpad=data.get("scratchpad", ""),
            tasks=[Task.from_dict(item) for item in data.get("tasks", [])],
            comments=[Comment.from_dict(item) for item in data.get("comments", [])],
            phase_colors=dict(data.get("phase_colors", {})),
            sub_phase_colors=dict(data.get("sub_phase_colors", {})),
            theme=theme_from_string(data.get("theme")),
        )

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def find_comment(self, comment_id: str) -> Optional[Comment]:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        return None


@dataclass(slots=True)
class ProjectStatus:
    """Board-level summary of a project."""

    project_id: str
    project_name: str
    total_tasks: int = 0
    placeholder_tasks: int = 0
    linked_sub_projects: int = 0
    tasks_by_status: Dict[str, int] = field(default_factory=dict)
    tasks_by_priority: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "project_id": self.project_id,
            "project_name": self.project_name,
            "total_tasks": self.total_tasks,
            "placeholder_tasks": self.placeholder_tasks,
            "linked_sub_projects": self.linked_sub_projects,
            "tasks_by_status": dict(self.tasks_by_status),
            "tasks_by_priority": dict(self.tasks_by_priority),
            "completion_rate": self.get_completion_rate(),
        }

    @property
    def completed_tasks(self) -> int:
        return self.tasks_by_status.get(TaskStatus.DONE.value, 0)

    def get_completion_rate(self) -> float:
        """Get task completion rate as percentage."""
        if self.total_tasks == 0:
            return 0.0
        return (self.completed_tasks / self.total_tasks) * 100
