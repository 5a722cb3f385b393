"""Workspace management for a single PlanSync project.

A ``Workspace`` owns one ``Project`` and runs the two directions of the
sync loop over it:

* text to board: ``sync_plan`` parses the plan, merges it with the current
  tasks and commits only when something changed;
* board to text: every structured mutation edits the task list and
  regenerates the whole plan with ``update_tasks_and_plan``.

The planning document and scratchpad are free text stored as given, and
comments hang off tasks by id without appearing in the plan.

All operations are synchronous and assume a single writer.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from .colors import assign_colors
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
    comment_status_from_string,
    document_type_from_string,
    priority_from_string,
    status_from_string,
    theme_from_string,
)
from .parser import parse_implementation_plan, suggest_sub_phases
from .plansync_logging import (
    log_comment_event,
    log_document_update,
    log_error_with_context,
    log_operation,
    log_performance,
    log_plan_regenerated,
    log_plan_synced,
    log_sub_project_link,
    log_task_update,
)

logger = logging.getLogger("plansync.workspace")

_SEQUENTIAL_ID = re.compile(r"^([a-zA-Z0-9]+)-(\d+)$")


class Workspace:
    """Keep a project's implementation plan and task board in sync."""

    def __init__(self, project: Project):
        self.project = project

    @property
    def project_id(self) -> str:
        return self.project.id

    @property
    def tasks(self) -> List[Task]:
        return self.project.tasks

    # ------------------------------------------------------------------
    # Sync loop
    # ------------------------------------------------------------------

    @log_performance("sync_plan")
    def sync_plan(self, text: Optional[str] = None) -> bool:
        """Bring the board in line with the plan text.

        ``text`` replaces the stored plan when given. Returns ``True`` when
        the tasks or color maps changed and were committed.
        """
        project = self.project
        if text is not None:
            project.implementation_plan = text

        with log_operation("sync_plan", project_id=project.id):
            parsed = parse_implementation_plan(project.implementation_plan)
            merged = merge_tasks(parsed, project.tasks)
            colors = assign_colors(merged, project.phase_colors, project.sub_phase_colors, project.theme)

            changed = has_changes(
                merged,
                project.tasks,
                colors.phase_colors,
                project.phase_colors,
                colors.sub_phase_colors,
                project.sub_phase_colors,
            )
            if changed:
                project.tasks = merged
                project.phase_colors = colors.phase_colors
                project.sub_phase_colors = colors.sub_phase_colors

        log_plan_synced(project.id, len(merged), changed)
        return changed

    @log_performance("update_tasks_and_plan")
    def update_tasks_and_plan(self, tasks: List[Task]) -> str:
        """Commit a new task list and regenerate the plan text from it."""
        project = self.project
        with log_operation("update_tasks_and_plan", project_id=project.id, task_count=len(tasks)):
            plan = generate_implementation_plan_text(tasks)
            colors = assign_colors(tasks, project.phase_colors, project.sub_phase_colors, project.theme)

            project.tasks = list(tasks)
            project.implementation_plan = plan
            project.phase_colors = colors.phase_colors
            project.sub_phase_colors = colors.sub_phase_colors

        log_plan_regenerated(project.id, len(tasks))
        return plan

    def set_theme(self, theme: Union[Theme, str]) -> None:
        """Switch color theme; labels already colored keep their colors."""
        self.project.theme = theme_from_string(theme)
        self.sync_plan()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def update_document(self, doc_type: Union[DocumentType, str], content: str) -> bool:
        """Replace one of the project's documents.

        Edits to the implementation plan go through ``sync_plan`` so the board
        follows the text; the planning document and scratchpad are stored as
        is. Returns ``True`` when anything changed.
        """
        doc_type = document_type_from_string(doc_type)
        content = content or ""
        project = self.project

        if doc_type is DocumentType.IMPLEMENTATION:
            text_changed = content != project.implementation_plan
            changed = self.sync_plan(content) or text_changed
        elif doc_type is DocumentType.PLANNING:
            changed = content != project.planning_document
            project.planning_document = content
        else:
            changed = content != project.scratchpad
            project.scratchpad = content

        log_document_update(project.id, doc_type.value, changed, length=len(content))
        return changed

    # ------------------------------------------------------------------
    # Structured task mutations
    # ------------------------------------------------------------------

    def require_task(self, task_id: str) -> Task:
        task = self.project.find_task(task_id)
        if task is None:
            raise ValueError(f"Task '{task_id}' not found in project '{self.project.id}'.")
        return task

    def create_task(
        self,
        task_id: str,
        description: str,
        phase: str,
        sub_phase: str,
        priority: Union[Priority, str] = Priority.MEDIUM,
        status: Union[TaskStatus, str] = TaskStatus.BACKLOG,
    ) -> Task:
        """Create a task from a text selection and append it to the board."""
        try:
            task = Task(
                id=task_id.strip(),
                description=description.replace("\n", " ").strip(),
                status=status_from_string(status),
                phase=phase.strip(),
                sub_phase=sub_phase.strip(),
                priority=priority_from_string(priority),
            )
            if not (task.id and task.phase and task.sub_phase and task.description):
                raise ValueError("Task ID, Phase, Sub-Phase, and Description are required.")
            if any(existing.id.lower() == task.id.lower() for existing in self.project.tasks):
                raise ValueError(f"Task ID \"{task.id}\" already exists. Please choose a unique ID.")

            for issue in task.validate():
                logger.warning(f"Task '{task.id}': {issue}")

            self.update_tasks_and_plan([*self.project.tasks, task])
            log_task_update(self.project.id, task.id, "created", status=task.status.value)
            logger.info(f"Created task '{task.id}' in project '{self.project.id}'")
            return task

        except Exception as e:
            log_error_with_context(e, {
                "operation": "create_task",
                "project_id": self.project.id,
                "task_id": task_id,
            })
            raise

    def update_task(self, task_id: str, **changes: Any) -> Task:
        """Replace fields of an existing task and regenerate the plan.

        Accepts ``description``, ``status``, ``phase``, ``sub_phase``,
        ``priority`` and ``sub_project_id``. The id itself is not editable.
        Description, phase and sub-phase are trimmed and may not be empty,
        since an empty heading or field does not survive a reparse.
        """
        allowed = {"description", "status", "phase", "sub_phase", "priority", "sub_project_id"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Cannot update task fields: {', '.join(sorted(unknown))}")

        try:
            current = self.require_task(task_id)
            if "status" in changes:
                changes["status"] = status_from_string(changes["status"])
            if "priority" in changes:
                changes["priority"] = priority_from_string(changes["priority"])
            if "description" in changes:
                changes["description"] = (changes["description"] or "").replace("\n", " ")
            for name in ("description", "phase", "sub_phase"):
                if name in changes:
                    changes[name] = (changes[name] or "").strip()
                    if not changes[name]:
                        raise ValueError(f"Task {name.replace('_', '-')} cannot be empty.")

            updated = replace(current, **changes)
            for issue in updated.validate():
                logger.warning(f"Task '{updated.id}': {issue}")

            self.update_tasks_and_plan([updated if t.id == task_id else t for t in self.project.tasks])
            log_task_update(self.project.id, task_id, "updated", fields=sorted(changes))
            return updated

        except Exception as e:
            log_error_with_context(e, {
                "operation": "update_task",
                "project_id": self.project.id,
                "task_id": task_id,
            })
            raise

    def move_task(self, task_id: str, status: Union[TaskStatus, str]) -> Task:
        """Move a task to another column, as a drag and drop would."""
        new_status = status_from_string(status)
        current = self.require_task(task_id)
        moved = replace(current, status=new_status)
        self.update_tasks_and_plan([moved if t.id == task_id else t for t in self.project.tasks])
        log_task_update(
            self.project.id, task_id, "moved",
            from_status=current.status.value, to_status=new_status.value,
        )
        return moved

    def delete_task(self, task_id: str) -> Task:
        """Remove a task and its comments, then regenerate the plan.

        A sub-project linked to the task is left in place.
        """
        removed = self.require_task(task_id)
        comment_count = len(self.comments_for(task_id))
        self.project.comments = [c for c in self.project.comments if c.task_id != task_id]
        self.update_tasks_and_plan([t for t in self.project.tasks if t.id != task_id])
        log_task_update(self.project.id, task_id, "deleted", comments_removed=comment_count)
        return removed

    def link_sub_project(self, task_id: str, sub_project_id: str) -> Task:
        """Attach a sub-project to a task.

        The link lives only on the task record; the plan text is left as is.
        """
        current = self.require_task(task_id)
        linked = replace(current, sub_project_id=sub_project_id)
        self.project.tasks = [linked if t.id == task_id else t for t in self.project.tasks]
        log_sub_project_link(self.project.id, task_id, sub_project_id)
        return linked

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def require_comment(self, comment_id: str) -> Comment:
        comment = self.project.find_comment(comment_id)
        if comment is None:
            raise ValueError(f"Comment '{comment_id}' not found in project '{self.project.id}'.")
        return comment

    def add_comment(self, task_id: str, content: str) -> Comment:
        """Attach an active comment to a task."""
        try:
            self.require_task(task_id)
            content = (content or "").strip()
            if not content:
                raise ValueError("Comment content cannot be empty.")

            comment = Comment(
                id=f"comment-{uuid.uuid4().hex[:12]}",
                task_id=task_id,
                content=content,
                created_at=datetime.now(timezone.utc).isoformat(),
            )
            self.project.comments.append(comment)
            log_comment_event(self.project.id, comment.id, "added", task_id=task_id)
            return comment

        except Exception as e:
            log_error_with_context(e, {
                "operation": "add_comment",
                "project_id": self.project.id,
                "task_id": task_id,
            })
            raise

    def set_comment_status(self, comment_id: str, status: Union[CommentStatus, str]) -> Comment:
        new_status = comment_status_from_string(status)
        current = self.require_comment(comment_id)
        updated = replace(current, status=new_status)
        self.project.comments = [updated if c.id == comment_id else c for c in self.project.comments]
        log_comment_event(
            self.project.id, comment_id, "status_changed",
            from_status=current.status.value, to_status=new_status.value,
        )
        return updated

    def resolve_comment(self, comment_id: str) -> Comment:
        return self.set_comment_status(comment_id, CommentStatus.RESOLVED)

    def discard_comment(self, comment_id: str) -> Comment:
        return self.set_comment_status(comment_id, CommentStatus.DISCARDED)

    def delete_comment(self, comment_id: str) -> Comment:
        removed = self.require_comment(comment_id)
        self.project.comments = [c for c in self.project.comments if c.id != comment_id]
        log_comment_event(self.project.id, comment_id, "deleted", task_id=removed.task_id)
        return removed

    def comments_for(self, task_id: str, status: Optional[Union[CommentStatus, str]] = None) -> List[Comment]:
        wanted = comment_status_from_string(status) if status is not None else None
        return [
            c for c in self.project.comments
            if c.task_id == task_id and (wanted is None or c.status is wanted)
        ]

    def list_comments(self) -> List[Comment]:
        """All comments, newest first."""
        return sorted(self.project.comments, key=lambda c: c.created_at, reverse=True)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def suggest_task_id(self, sub_phase: str) -> Optional[str]:
        """Propose the next sequential id for a task in ``sub_phase``.

        The prefix comes from the first task already in that sub-phase,
        which must look like ``PREFIX-NN``; the number is one past the
        highest ``PREFIX-NN`` anywhere on the board.
        """
        sub_phase = sub_phase.strip()
        sample = next((t for t in self.project.tasks if t.sub_phase == sub_phase), None)
        if not sub_phase or sample is None:
            return None

        match = _SEQUENTIAL_ID.match(sample.id)
        if not match:
            return None

        prefix = match.group(1)
        numbered = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
        highest = 0
        for task in self.project.tasks:
            task_match = numbered.match(task.id)
            if task_match:
                highest = max(highest, int(task_match.group(1)))
        return f"{prefix}-{highest + 1:02d}"

    def suggest_sub_phases(self, prefix: str) -> List[str]:
        return suggest_sub_phases(self.project.tasks, prefix)

    def existing_phases(self) -> List[str]:
        return list(dict.fromkeys(task.phase for task in self.project.tasks))

    def existing_sub_phases(self) -> List[str]:
        return list(dict.fromkeys(task.sub_phase for task in self.project.tasks))

    def board(self) -> Dict[str, List[Dict[str, Any]]]:
        """Tasks per Kanban column, columns in canonical order.

        Each card carries the number of active comments on its task.
        """
        active: Dict[str, int] = {}
        for comment in self.project.comments:
            if comment.status is CommentStatus.ACTIVE:
                active[comment.task_id] = active.get(comment.task_id, 0) + 1

        columns: Dict[str, List[Dict[str, Any]]] = {status.value: [] for status in KANBAN_COLUMNS}
        for task in self.project.tasks:
            card = task.to_dict()
            card["active_comments"] = active.get(task.id, 0)
            columns[task.status.value].append(card)
        return columns

    def form_suggestions(self) -> Dict[str, List[str]]:
        """Phases and sub-phases already in use, for filling in a new task."""
        return {"phases": self.existing_phases(), "sub_phases": self.existing_sub_phases()}

    def status(self) -> ProjectStatus:
        tasks = self.project.tasks
        return ProjectStatus(
            project_id=self.project.id,
            project_name=self.project.name,
            total_tasks=len(tasks),
            placeholder_tasks=sum(1 for t in tasks if t.is_placeholder),
            linked_sub_projects=sum(1 for t in tasks if t.sub_project_id),
            tasks_by_status={s.value: sum(1 for t in tasks if t.status is s) for s in KANBAN_COLUMNS},
            tasks_by_priority={p.value: sum(1 for t in tasks if t.priority is p) for p in Priority},
        )
