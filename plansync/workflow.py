"""Project management for PlanSync.

This module holds the in-process registry of projects and exposes each
workspace operation as a call that returns a plain response dictionary.
Failures come back as ``error`` dictionaries with a suggestion for the
caller instead of exceptions.
"""

from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Dict, Optional

from .models import (
    DEFAULT_THEME,
    KANBAN_COLUMNS,
    DocumentType,
    Priority,
    Project,
    Task,
    TaskStatus,
    theme_from_string,
)
from .plansync_logging import (
    log_error_with_context,
    log_performance,
    observability_hooks,
)
from .workspace import Workspace

logger = logging.getLogger("plansync.workflow")

THEME_ENV = "PLANSYNC_THEME"

DEFAULT_PLAN = "# Backlog\n## General\n- Initial Task, TASK-01, Setup project structure, High\n"
SUB_PROJECT_PLAN = "# Backlog\n## General\n- New Task, TASK-01, Describe the first step, Medium\n"


def _new_project_id() -> str:
    return f"proj-{uuid.uuid4().hex[:12]}"


def default_theme() -> str:
    """Theme for new projects, from ``PLANSYNC_THEME`` when set."""
    return theme_from_string(os.getenv(THEME_ENV, DEFAULT_THEME.value)).value


class ProjectManager:
    """Manages the set of projects and the sync operations on each."""

    def __init__(self):
        self.workspaces: Dict[str, Workspace] = {}

    # ------------------------------------------------------------------
    # Project registry
    # ------------------------------------------------------------------

    def add_project(self, project: Project) -> Workspace:
        """Register an existing project and sync its board to its plan."""
        workspace = Workspace(project)
        workspace.sync_plan()
        self.workspaces[project.id] = workspace
        observability_hooks.log_project_event("project_added", project_id=project.id, name=project.name)
        return workspace

    def workspace(self, project_id: str) -> Workspace:
        try:
            return self.workspaces[project_id]
        except KeyError:
            raise ValueError(f"Project '{project_id}' not found.") from None

    @log_performance("create_project")
    def create_project(
        self,
        name: str,
        implementation_plan: Optional[str] = None,
        theme: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a project seeded with a starter plan."""
        try:
            if not name or not name.strip():
                raise ValueError("Project name cannot be empty")
            name = name.strip()
            project = Project(
                id=_new_project_id(),
                name=name,
                planning_document=f"# Planning for {name}",
                implementation_plan=implementation_plan if implementation_plan is not None else DEFAULT_PLAN,
                scratchpad=f"# Scratchpad for {name}\n\n- Jot down initial ideas here.",
                theme=theme_from_string(theme or default_theme()),
            )
            workspace = self.add_project(project)
            logger.info(f"Created project '{project.id}' ({name})")
            return {
                "project": project.to_dict(),
                "message": f"Project '{name}' created with {len(workspace.tasks)} tasks.",
            }
        except Exception as e:
            log_error_with_context(e, {"operation": "create_project", "name": name})
            return {
                "error": f"Failed to create project: {e}",
                "suggestion": "Provide a non-empty project name",
                "next_suggested_step": "create_project",
            }

    def get_project(self, project_id: str) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            parent = self.find_parent_project(project_id)
            return {
                "project": workspace.project.to_dict(),
                "board": workspace.board(),
                "form_suggestions": workspace.form_suggestions(),
                "parent_project_id": parent.id if parent else None,
            }
        except Exception as e:
            return self._not_found(e)

    def list_projects(self) -> Dict[str, Any]:
        sub_project_ids = {
            task.sub_project_id
            for workspace in self.workspaces.values()
            for task in workspace.tasks
            if task.sub_project_id
        }
        projects = [
            {
                "id": workspace.project.id,
                "name": workspace.project.name,
                "task_count": len(workspace.tasks),
                "is_sub_project": workspace.project.id in sub_project_ids,
            }
            for workspace in self.workspaces.values()
        ]
        return {"projects": projects, "count": len(projects)}

    def delete_project(self, project_id: str) -> Dict[str, Any]:
        """Remove a project. Links pointing at it from parent tasks are kept."""
        try:
            workspace = self.workspace(project_id)
            del self.workspaces[project_id]
            observability_hooks.log_project_event("project_deleted", project_id=project_id)
            return {"deleted": True, "project_id": project_id, "name": workspace.project.name}
        except Exception as e:
            return self._not_found(e)

    def find_parent_project(self, project_id: str) -> Optional[Project]:
        for workspace in self.workspaces.values():
            if workspace.project.id == project_id:
                continue
            if any(task.sub_project_id == project_id for task in workspace.tasks):
                return workspace.project
        return None

    @log_performance("open_sub_project")
    def open_sub_project(self, project_id: str, task_id: str) -> Dict[str, Any]:
        """Drill into a task: return its sub-project, creating it on first use."""
        try:
            parent = self.workspace(project_id)
            task = parent.require_task(task_id)

            if task.sub_project_id and task.sub_project_id in self.workspaces:
                return {
                    "created": False,
                    "project": self.workspaces[task.sub_project_id].project.to_dict(),
                    "parent_project_id": project_id,
                }

            sub_project = Project(
                id=_new_project_id(),
                name=f"Task: {task.description}",
                planning_document=(
                    f"# Parent Task: {task.description}\n\n"
                    f"**ID:** {task.id}\n"
                    f"**Phase:** {task.phase} / {task.sub_phase}\n"
                    f"**Priority:** {task.priority.value}\n\n"
                    "## Objective\n"
                    "Break down and manage the work required to complete this task."
                ),
                implementation_plan=SUB_PROJECT_PLAN,
                scratchpad=f"Notes for task: {task.description}",
                theme=parent.project.theme,
            )
            self.add_project(sub_project)
            parent.link_sub_project(task_id, sub_project.id)
            logger.info(f"Opened sub-project '{sub_project.id}' for task '{task_id}'")
            return {
                "created": True,
                "project": sub_project.to_dict(),
                "parent_project_id": project_id,
            }
        except Exception as e:
            log_error_with_context(e, {
                "operation": "open_sub_project",
                "project_id": project_id,
                "task_id": task_id,
            })
            return {
                "error": f"Failed to open sub-project: {e}",
                "suggestion": f"Check that task '{task_id}' exists in project '{project_id}'",
                "next_suggested_step": "get_project",
            }

    # ------------------------------------------------------------------
    # Sync operations
    # ------------------------------------------------------------------

    def sync_plan(self, project_id: str, text: str) -> Dict[str, Any]:
        """Replace a project's plan text and update its board."""
        try:
            workspace = self.workspace(project_id)
            changed = workspace.sync_plan(text)
            return {
                "project_id": project_id,
                "changed": changed,
                "tasks": [task.to_dict() for task in workspace.tasks],
                "phase_colors": dict(workspace.project.phase_colors),
                "sub_phase_colors": dict(workspace.project.sub_phase_colors),
            }
        except Exception as e:
            return self._not_found(e)

    def create_task(
        self,
        project_id: str,
        task_id: str,
        description: str,
        phase: str,
        sub_phase: str,
        priority: str = Priority.MEDIUM.value,
        status: str = TaskStatus.BACKLOG.value,
    ) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            task = workspace.create_task(task_id, description, phase, sub_phase, priority, status)
            return self._task_response(workspace, task)
        except Exception as e:
            return {
                "error": f"Failed to create task: {e}",
                "suggestion": "Use a unique task ID and fill in phase, sub-phase and description",
                "next_suggested_step": "suggest_task_id",
            }

    def update_task(self, project_id: str, task_id: str, **changes: Any) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            task = workspace.update_task(task_id, **changes)
            return self._task_response(workspace, task)
        except Exception as e:
            return self._task_error("update", task_id, project_id, e)

    def move_task(self, project_id: str, task_id: str, status: str) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            task = workspace.move_task(task_id, status)
            return self._task_response(workspace, task)
        except Exception as e:
            return self._task_error("move", task_id, project_id, e)

    def delete_task(self, project_id: str, task_id: str) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            comment_count = len(workspace.comments_for(task_id))
            task = workspace.delete_task(task_id)
            response = self._task_response(workspace, task)
            response["deleted"] = True
            response["comments_removed"] = comment_count
            return response
        except Exception as e:
            return self._task_error("delete", task_id, project_id, e)

    def update_document(self, project_id: str, doc_type: str, content: str) -> Dict[str, Any]:
        """Replace the planning document, implementation plan or scratchpad."""
        try:
            workspace = self.workspace(project_id)
            changed = workspace.update_document(doc_type, content)
            response: Dict[str, Any] = {
                "project_id": project_id,
                "doc_type": doc_type,
                "changed": changed,
            }
            if doc_type.strip().lower() == DocumentType.IMPLEMENTATION.value:
                response["tasks"] = [task.to_dict() for task in workspace.tasks]
            return response
        except Exception as e:
            return {
                "error": f"Failed to update document: {e}",
                "suggestion": "Use one of: " + ", ".join(d.value for d in DocumentType),
                "next_suggested_step": "get_project",
            }

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def add_comment(self, project_id: str, task_id: str, content: str) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            comment = workspace.add_comment(task_id, content)
            return {"project_id": project_id, "comment": comment.to_dict()}
        except Exception as e:
            return {
                "error": f"Failed to add comment: {e}",
                "suggestion": f"Check that task '{task_id}' exists and the comment is not empty",
                "next_suggested_step": "get_project",
            }

    def set_comment_status(self, project_id: str, comment_id: str, status: str) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            comment = workspace.set_comment_status(comment_id, status)
            return {"project_id": project_id, "comment": comment.to_dict()}
        except Exception as e:
            return self._comment_error("update", comment_id, e)

    def delete_comment(self, project_id: str, comment_id: str) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            comment = workspace.delete_comment(comment_id)
            return {"project_id": project_id, "comment": comment.to_dict(), "deleted": True}
        except Exception as e:
            return self._comment_error("delete", comment_id, e)

    def list_comments(self, project_id: str, task_id: Optional[str] = None) -> Dict[str, Any]:
        """Comments newest first, optionally only those on one task."""
        try:
            workspace = self.workspace(project_id)
            comments = workspace.list_comments()
            if task_id is not None:
                comments = [c for c in comments if c.task_id == task_id]
            return {
                "project_id": project_id,
                "comments": [c.to_dict() for c in comments],
                "count": len(comments),
            }
        except Exception as e:
            return self._not_found(e)

    def suggest_task_id(self, project_id: str, sub_phase: str) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            return {
                "project_id": project_id,
                "sub_phase": sub_phase,
                "task_id": workspace.suggest_task_id(sub_phase),
            }
        except Exception as e:
            return self._not_found(e)

    def suggest_sub_phases(self, project_id: str, prefix: str) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            return {"project_id": project_id, "suggestions": workspace.suggest_sub_phases(prefix)}
        except Exception as e:
            return self._not_found(e)

    def project_status(self, project_id: str) -> Dict[str, Any]:
        try:
            workspace = self.workspace(project_id)
            status = workspace.status().to_dict()
            status["columns"] = [column.value for column in KANBAN_COLUMNS]
            return status
        except Exception as e:
            return self._not_found(e)

    # ------------------------------------------------------------------
    # Response helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _task_response(workspace: Workspace, task: Task) -> Dict[str, Any]:
        return {
            "project_id": workspace.project_id,
            "task": task.to_dict(),
            "implementation_plan": workspace.project.implementation_plan,
            "task_count": len(workspace.tasks),
        }

    @staticmethod
    def _task_error(action: str, task_id: str, project_id: str, error: Exception) -> Dict[str, Any]:
        return {
            "error": f"Failed to {action} task: {error}",
            "suggestion": f"Check that task '{task_id}' exists in project '{project_id}'",
            "next_suggested_step": "get_project",
        }

    @staticmethod
    def _comment_error(action: str, comment_id: str, error: Exception) -> Dict[str, Any]:
        return {
            "error": f"Failed to {action} comment: {error}",
            "suggestion": f"Check that comment '{comment_id}' exists; statuses are Active, Resolved and Discarded",
            "next_suggested_step": "list_comments",
        }

    @staticmethod
    def _not_found(error: Exception) -> Dict[str, Any]:
        return {
            "error": str(error),
            "suggestion": "List available projects to find a valid project ID",
            "next_suggested_step": "list_projects",
        }
