"""PlanSync - bidirectional sync between an implementation plan and a task board."""

from .colors import ColorAssignment, assign_colors
from .generator import generate_implementation_plan_text
from .merge import has_changes, merge_tasks
from .models import (
    KANBAN_COLUMNS,
    Comment,
    CommentStatus,
    DocumentType,
    Priority,
    Project,
    ProjectStatus,
    Task,
    TaskStatus,
    Theme,
)
from .parser import parse_implementation_plan
from .workflow import ProjectManager
from .workspace import Workspace

__all__ = [
    "ColorAssignment",
    "Comment",
    "CommentStatus",
    "DocumentType",
    "KANBAN_COLUMNS",
    "Priority",
    "Project",
    "ProjectManager",
    "ProjectStatus",
    "Task",
    "TaskStatus",
    "Theme",
    "Workspace",
    "assign_colors",
    "generate_implementation_plan_text",
    "has_changes",
    "merge_tasks",
    "parse_implementation_plan",
]
