"""Workspace context builder.

Reads a bounded slice of the workspace (projects with ids, recent tasks and
notes, recent chat history) and renders it as the markdown block the
classification policy sees. Every store query carries an explicit limit.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel

from config.schema import ContextConfig
from core.errors import ValidationError
from core.operations.types import Scope
from storage.models import NoteRow, ProjectRow, QueryFilters, TaskRow
from storage.workspace import WorkspaceStore

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


@dataclass
class WorkspaceSnapshot:
    """Read-only view handed to the policy and the assembler for one turn."""

    user_id: str
    scope: Scope
    project_id: str | None = None
    projects: list[ProjectRow] = field(default_factory=list)
    tasks: list[TaskRow] = field(default_factory=list)
    notes: list[NoteRow] = field(default_factory=list)
    history: list[ChatMessage] = field(default_factory=list)

    def project_by_name(self, name: str) -> ProjectRow | None:
        """Case-insensitive lookup of a project (domain) by name."""
        key = name.strip().casefold()
        for project in self.projects:
            if project.name.strip().casefold() == key:
                return project
        return None

    def project_by_id(self, project_id: str) -> ProjectRow | None:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    @property
    def scope_project(self) -> ProjectRow | None:
        return self.project_by_id(self.project_id) if self.project_id else None


class WorkspaceContextBuilder:
    def __init__(self, store: WorkspaceStore, config: ContextConfig | None = None):
        self.store = store
        self.config = config or ContextConfig()

    def build(
        self,
        user_id: str,
        scope: Scope,
        project_id: str | None = None,
        history: Sequence[ChatMessage] = (),
    ) -> WorkspaceSnapshot:
        if scope == Scope.PROJECT and not project_id:
            raise ValidationError("project scope requires project_id")

        cfg = self.config
        scoped = QueryFilters(project_id=project_id if scope == Scope.PROJECT else None)

        projects = self.store.query_projects(user_id, QueryFilters(), cfg.max_projects)
        tasks = [] if scope == Scope.NOTES else self.store.query_tasks(user_id, scoped, cfg.max_tasks)
        notes = [] if scope == Scope.TASKS else self.store.query_notes(user_id, scoped, cfg.max_notes)

        window = list(history)[-cfg.history_window :] if cfg.history_window else []

        logger.debug(
            "Built snapshot for %s (%s): %d projects, %d tasks, %d notes, %d messages",
            user_id,
            scope.value,
            len(projects),
            len(tasks),
            len(notes),
            len(window),
        )
        return WorkspaceSnapshot(
            user_id=user_id,
            scope=scope,
            project_id=project_id,
            projects=projects,
            tasks=tasks,
            notes=notes,
            history=window,
        )


# ============================================================================
# Model-facing rendering
# ============================================================================

_STATUS_HEADINGS = (
    ("todo", "**To Do:**"),
    ("in_progress", "**In Progress:**"),
)


def _project_suffix(snapshot: WorkspaceSnapshot, project_id: str | None) -> str:
    if not project_id:
        return ""
    project = snapshot.project_by_id(project_id)
    return f" [Project: {project.name}]" if project else f" [Project id: {project_id}]"


def format_for_model(snapshot: WorkspaceSnapshot) -> str:
    """Render the snapshot as the markdown context block for the system prompt."""
    lines = ["## Workspace Context", ""]

    lines.append("### Projects")
    if snapshot.projects:
        for project in snapshot.projects:
            line = f"- **{project.name}** [id: {project.id}]"
            if project.description:
                line += f": {project.description}"
            lines.append(line)
    else:
        lines.append("(No projects yet)")
    lines.append("")

    if snapshot.scope != Scope.NOTES:
        lines.append("### Recent Tasks")
        if snapshot.tasks:
            for status, heading in _STATUS_HEADINGS:
                group = [t for t in snapshot.tasks if t.status == status]
                if not group:
                    continue
                lines.append(heading)
                for task in group:
                    line = f"- {task.title} [id: {task.id}]"
                    if task.priority == "high":
                        line += " [HIGH]"
                    if task.due_date:
                        line += f" (due: {task.due_date}"
                        line += f" {task.due_time})" if task.due_time else ")"
                    line += _project_suffix(snapshot, task.project_id)
                    lines.append(line)
            completed = sum(1 for t in snapshot.tasks if t.status == "completed")
            if completed:
                lines.append(f"**Completed:** {completed} tasks")
        else:
            lines.append("(No tasks yet)")
        lines.append("")

    if snapshot.scope != Scope.TASKS:
        lines.append("### Recent Notes")
        if snapshot.notes:
            for note in snapshot.notes:
                line = f"- {note.title or 'Untitled'} [id: {note.id}]"
                line += _project_suffix(snapshot, note.project_id)
                lines.append(line)
        else:
            lines.append("(No notes yet)")
        lines.append("")

    return "\n".join(lines)
