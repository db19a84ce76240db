"""Tests for WorkspaceContextBuilder and the model-facing context block."""

import pytest

from config.schema import ContextConfig
from core.context.builder import ChatMessage, WorkspaceContextBuilder, WorkspaceSnapshot, format_for_model
from core.errors import ValidationError
from core.operations.types import Scope
from fakes.workspace import make_store, seed_domains
from storage.models import NoteRow, ProjectRow, TaskRow

USER = "user-1"


@pytest.fixture
def store(tmp_path):
    s = make_store(tmp_path)
    yield s
    s.close()


def test_global_snapshot_reads_everything(store):
    domains = seed_domains(store, USER)
    store.create_task(USER, {"title": "Run 5k", "project_id": domains["Body"].id})
    store.create_note(USER, {"title": "Reading list"})

    snapshot = WorkspaceContextBuilder(store).build(USER, Scope.GLOBAL)

    assert len(snapshot.projects) == 6
    assert [t.title for t in snapshot.tasks] == ["Run 5k"]
    assert [n.title for n in snapshot.notes] == ["Reading list"]


def test_limits_are_applied(store):
    for i in range(5):
        store.create_task(USER, {"title": f"Task {i}"})
    config = ContextConfig(max_tasks=2, max_notes=1, max_projects=1)
    snapshot = WorkspaceContextBuilder(store, config).build(USER, Scope.GLOBAL)
    assert len(snapshot.tasks) == 2


def test_scope_skips_irrelevant_entities(store):
    store.create_task(USER, {"title": "Task"})
    store.create_note(USER, {"title": "Note"})
    builder = WorkspaceContextBuilder(store)

    tasks_only = builder.build(USER, Scope.TASKS)
    assert tasks_only.notes == []
    assert len(tasks_only.tasks) == 1

    notes_only = builder.build(USER, Scope.NOTES)
    assert notes_only.tasks == []
    assert len(notes_only.notes) == 1


def test_project_scope_filters_to_project(store):
    domains = seed_domains(store, USER)
    store.create_task(USER, {"title": "Budget", "project_id": domains["Finance"].id})
    store.create_task(USER, {"title": "Stretch", "project_id": domains["Body"].id})

    snapshot = WorkspaceContextBuilder(store).build(USER, Scope.PROJECT, domains["Finance"].id)
    assert [t.title for t in snapshot.tasks] == ["Budget"]
    assert snapshot.scope_project.name == "Finance"


def test_project_scope_requires_project_id(store):
    with pytest.raises(ValidationError, match="project_id"):
        WorkspaceContextBuilder(store).build(USER, Scope.PROJECT)


def test_history_window(store):
    history = [ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"m{i}") for i in range(6)]
    snapshot = WorkspaceContextBuilder(store, ContextConfig(history_window=3)).build(USER, Scope.GLOBAL, history=history)
    assert [m.content for m in snapshot.history] == ["m3", "m4", "m5"]

    none = WorkspaceContextBuilder(store, ContextConfig(history_window=0)).build(USER, Scope.GLOBAL, history=history)
    assert none.history == []


def test_other_users_rows_invisible(store):
    store.create_task("someone-else", {"title": "Hidden"})
    assert WorkspaceContextBuilder(store).build(USER, Scope.GLOBAL).tasks == []


def test_snapshot_project_lookup_is_case_insensitive():
    snapshot = WorkspaceSnapshot(
        user_id=USER, scope=Scope.GLOBAL, projects=[ProjectRow(id="p1", user_id=USER, name="Finance")]
    )
    assert snapshot.project_by_name("  finance ").id == "p1"
    assert snapshot.project_by_name("Body") is None
    assert snapshot.project_by_id("p1").name == "Finance"


class TestFormatForModel:
    def _snapshot(self, scope=Scope.GLOBAL):
        return WorkspaceSnapshot(
            user_id=USER,
            scope=scope,
            projects=[ProjectRow(id="p1", user_id=USER, name="Body", description="Health and fitness")],
            tasks=[
                TaskRow(id="t1", user_id=USER, title="Run", priority="high", due_date="2026-10-20", due_time="07:00",
                        project_id="p1"),
                TaskRow(id="t2", user_id=USER, title="Stretch", status="in_progress"),
                TaskRow(id="t3", user_id=USER, title="Done thing", status="completed"),
            ],
            notes=[NoteRow(id="n1", user_id=USER, title="Plan", project_id="p1")],
        )

    def test_full_render(self):
        text = format_for_model(self._snapshot())
        assert text.startswith("## Workspace Context")
        assert "- **Body** [id: p1]: Health and fitness" in text
        assert "**To Do:**" in text
        assert "- Run [id: t1] [HIGH] (due: 2026-10-20 07:00) [Project: Body]" in text
        assert "**In Progress:**" in text
        assert "- Stretch [id: t2]" in text
        assert "**Completed:** 1 tasks" in text
        assert "- Plan [id: n1] [Project: Body]" in text

    def test_scope_omits_sections(self):
        assert "### Recent Notes" not in format_for_model(self._snapshot(Scope.TASKS))
        assert "### Recent Tasks" not in format_for_model(self._snapshot(Scope.NOTES))

    def test_empty_sections(self):
        text = format_for_model(WorkspaceSnapshot(user_id=USER, scope=Scope.GLOBAL))
        assert "(No projects yet)" in text
        assert "(No tasks yet)" in text
        assert "(No notes yet)" in text
