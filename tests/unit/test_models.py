"""Unit tests for PlanSync models.

This module tests the task record, the status/priority fallback tables
and the project serialization helpers.
"""

import pytest

from plansync.models import (
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
    is_placeholder_id,
    placeholder_id,
    priority_from_string,
    status_from_string,
    theme_from_string,
)


class TestStatusLookup:
    """Test cases for status_from_string."""

    @pytest.mark.parametrize("raw, expected", [
        ("Backlog", TaskStatus.BACKLOG),
        ("To-Do", TaskStatus.TODO),
        ("todo", TaskStatus.TODO),
        ("TO DO", TaskStatus.TODO),
        ("In Progress", TaskStatus.IN_PROGRESS),
        ("in-progress", TaskStatus.IN_PROGRESS),
        ("Review", TaskStatus.REVIEW),
        ("Done", TaskStatus.DONE),
        ("  future ", TaskStatus.FUTURE),
    ])
    def test_known_statuses(self, raw, expected):
        """Test that case and punctuation are ignored."""
        assert status_from_string(raw) is expected

    @pytest.mark.parametrize("raw", ["", "Blocked", "In Prog", None])
    def test_unknown_status_falls_back_to_backlog(self, raw):
        """Test that anything unrecognized maps to Backlog."""
        assert status_from_string(raw) is TaskStatus.BACKLOG

    def test_enum_passes_through(self):
        assert status_from_string(TaskStatus.REVIEW) is TaskStatus.REVIEW


class TestPriorityLookup:
    """Test cases for priority_from_string."""

    def test_known_priorities(self):
        assert priority_from_string("High") is Priority.HIGH
        assert priority_from_string("medium") is Priority.MEDIUM
        assert priority_from_string(" LOW ") is Priority.LOW
        assert priority_from_string("None") is Priority.NONE

    @pytest.mark.parametrize("raw", ["", "Urgent", "Hi", None])
    def test_unknown_priority_falls_back_to_none(self, raw):
        assert priority_from_string(raw) is Priority.NONE


class TestPlaceholderIds:
    """Test cases for placeholder id helpers."""

    def test_placeholder_id_uses_line_index(self):
        assert placeholder_id(0) == "partial-0"
        assert placeholder_id(12) == "partial-12"

    def test_is_placeholder_id(self):
        assert is_placeholder_id("partial-3")
        assert not is_placeholder_id("TASK-01")

    def test_task_is_placeholder(self):
        assert Task(id="partial-4", description="...").is_placeholder
        assert not Task(id="T-1", description="x").is_placeholder


class TestTask:
    """Test cases for the Task record."""

    def test_task_defaults(self):
        task = Task(id="T-1", description="Write docs")

        assert task.status is TaskStatus.BACKLOG
        assert task.phase == "General"
        assert task.sub_phase == ""
        assert task.priority is Priority.NONE
        assert task.sub_project_id is None
        assert task.line_index == -1

    def test_line_index_ignored_by_equality(self):
        """Test that source positions do not affect equality."""
        first = Task(id="T-1", description="x", line_index=3)
        second = Task(id="T-1", description="x", line_index=9)

        assert first == second

    def test_sub_project_id_affects_equality(self):
        assert Task(id="T-1", description="x") != Task(id="T-1", description="x", sub_project_id="p")

    def test_to_dict(self):
        task = Task(
            id="API-01",
            description="Add endpoint",
            status=TaskStatus.IN_PROGRESS,
            phase="Backend",
            sub_phase="API",
            priority=Priority.HIGH,
            sub_project_id="proj-1",
            line_index=5,
        )

        result = task.to_dict()

        assert result == {
            "id": "API-01",
            "description": "Add endpoint",
            "status": "In Progress",
            "phase": "Backend",
            "sub_phase": "API",
            "priority": "High",
            "sub_project_id": "proj-1",
        }

    def test_from_dict_applies_fallbacks(self):
        """Test that from_dict accepts partial and unknown values."""
        task = Task.from_dict({"id": "X-1", "status": "nonsense", "priority": "urgent"})

        assert task.status is TaskStatus.BACKLOG
        assert task.priority is Priority.NONE
        assert task.description == "..."
        assert task.phase == "General"

    def test_from_dict_round_trip(self):
        task = Task(id="X-1", description="d", status=TaskStatus.DONE, phase="P", sub_phase="S",
                    priority=Priority.LOW, sub_project_id="proj-9")

        assert Task.from_dict(task.to_dict()) == task

    def test_validate_valid_task(self):
        task = Task(id="T-1", description="Fine", phase="P", sub_phase="S")
        assert task.validate() == []

    def test_validate_reports_issues(self):
        task = Task(id="partial-2", description="a, b", phase="")

        issues = task.validate()

        assert "Task ID 'partial-2' is a placeholder" in issues
        assert "Phase is required" in issues
        assert any("comma" in issue for issue in issues)


class TestTheme:
    """Test cases for theme lookup."""

    def test_known_theme(self):
        assert theme_from_string("solarized-dark") is Theme.SOLARIZED_DARK
        assert theme_from_string("NORD") is Theme.NORD

    def test_unknown_theme_falls_back_to_dark(self):
        assert theme_from_string("neon") is Theme.DARK
        assert theme_from_string(None) is Theme.DARK


class TestComments:
    """Test cases for comment and document types."""

    @pytest.mark.parametrize("raw", ["Resolved", "resolved", " RESOLVED "])
    def test_comment_status_lookup(self, raw):
        assert comment_status_from_string(raw) is CommentStatus.RESOLVED

    def test_unknown_comment_status_raises(self):
        with pytest.raises(ValueError, match="Active, Resolved, Discarded"):
            comment_status_from_string("Archived")

    def test_comment_defaults_to_active(self):
        comment = Comment.from_dict({"id": "c-1", "task_id": "T-1", "content": "x"})

        assert comment.status is CommentStatus.ACTIVE

    def test_document_type_lookup(self):
        assert document_type_from_string(" Scratchpad ") is DocumentType.SCRATCHPAD
        with pytest.raises(ValueError, match="Unknown document type"):
            document_type_from_string("notes")


class TestProject:
    """Test cases for Project."""

    def test_project_round_trip(self):
        project = Project(
            id="proj-1",
            name="Demo",
            implementation_plan="# Backlog\n",
            tasks=[Task(id="T-1", description="x", sub_project_id="proj-2")],
            phase_colors={"General": "hsl(0, 90%, 45%)"},
            theme=Theme.DRACULA,
        )

        restored = Project.from_dict(project.to_dict())

        assert restored.tasks == project.tasks
        assert restored.phase_colors == project.phase_colors
        assert restored.theme is Theme.DRACULA

    def test_project_round_trip_with_comments(self):
        comment = Comment(id="comment-1", task_id="T-1", content="check this",
                          created_at="2024-05-01T10:00:00+00:00", status=CommentStatus.RESOLVED)
        project = Project(id="proj-1", name="Demo", comments=[comment])

        data = project.to_dict()

        assert data["comments"][0]["status"] == "Resolved"
        assert Project.from_dict(data).comments == [comment]
        assert Project.from_dict(data).find_comment("comment-1") == comment
        assert project.find_comment("missing") is None

    def test_find_task(self):
        project = Project(id="p", name="n", tasks=[Task(id="A-1", description="a")])

        assert project.find_task("A-1").description == "a"
        assert project.find_task("missing") is None


class TestProjectStatus:
    """Test cases for ProjectStatus."""

    def test_completion_rate(self):
        status = ProjectStatus(project_id="p", project_name="n", total_tasks=4,
                               tasks_by_status={"Done": 1})

        assert status.completed_tasks == 1
        assert status.get_completion_rate() == 25.0

    def test_completion_rate_empty(self):
        assert ProjectStatus(project_id="p", project_name="n").get_completion_rate() == 0.0


def test_kanban_columns_order():
    assert [status.value for status in KANBAN_COLUMNS] == [
        "Backlog", "To-Do", "In Progress", "Review", "Done", "Future",
    ]
