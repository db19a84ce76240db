"""Collaborator-facing workspace store.

One object exposing the create/update/delete calls the execution engine makes
and the bounded ``query_*`` calls the context builder and the query tools use.
"""

from __future__ import annotations

import logging
from typing import Any

from storage.contracts import FileRepo, NoteRepo, ProjectRepo, TaskRepo
from storage.models import FileRow, NoteRow, ProjectRow, QueryFilters, TaskRow

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 50
MAX_QUERY_LIMIT = 100


def clamp_limit(limit: int | None, *, default: int = DEFAULT_QUERY_LIMIT, ceiling: int = MAX_QUERY_LIMIT) -> int:
    """Every workspace query is bounded; non-positive or missing limits fall back to the default."""
    if not limit or limit <= 0:
        return min(default, ceiling)
    return min(limit, ceiling)


class WorkspaceStore:
    def __init__(self, tasks: TaskRepo, notes: NoteRepo, projects: ProjectRepo, files: FileRepo) -> None:
        self.tasks = tasks
        self.notes = notes
        self.projects = projects
        self.files = files

    def close(self) -> None:
        for repo in (self.tasks, self.notes, self.projects, self.files):
            repo.close()

    # ── tasks ──

    def create_task(self, user_id: str, data: dict[str, Any]) -> TaskRow:
        row = self.tasks.create(user_id, data)
        logger.debug("created task %s for %s", row.id, user_id)
        return row

    def update_task(self, user_id: str, task_id: str, changes: dict[str, Any]) -> TaskRow:
        return self.tasks.update(user_id, task_id, changes)

    def delete_task(self, user_id: str, task_id: str) -> None:
        self.tasks.delete(user_id, task_id)

    # ── notes ──

    def create_note(self, user_id: str, data: dict[str, Any]) -> NoteRow:
        row = self.notes.create(user_id, data)
        logger.debug("created note %s for %s", row.id, user_id)
        return row

    def update_note(self, user_id: str, note_id: str, changes: dict[str, Any]) -> NoteRow:
        return self.notes.update(user_id, note_id, changes)

    def delete_note(self, user_id: str, note_id: str) -> None:
        self.notes.delete(user_id, note_id)

    # ── projects ──

    def create_project(self, user_id: str, data: dict[str, Any]) -> ProjectRow:
        return self.projects.create(user_id, data)

    def update_project(self, user_id: str, project_id: str, changes: dict[str, Any]) -> ProjectRow:
        return self.projects.update(user_id, project_id, changes)

    def delete_project(self, user_id: str, project_id: str) -> None:
        self.projects.delete(user_id, project_id)

    # ── files ──

    def update_file_project(self, user_id: str, file_id: str, project_id: str | None) -> FileRow:
        return self.files.update_project(user_id, file_id, project_id)

    def delete_file(self, user_id: str, file_id: str) -> None:
        self.files.delete(user_id, file_id)

    # ── bounded queries ──

    def query_tasks(self, user_id: str, filters: QueryFilters | None = None, limit: int | None = None) -> list[TaskRow]:
        return self.tasks.query(user_id, filters or QueryFilters(), clamp_limit(limit))

    def query_notes(self, user_id: str, filters: QueryFilters | None = None, limit: int | None = None) -> list[NoteRow]:
        return self.notes.query(user_id, filters or QueryFilters(), clamp_limit(limit))

    def query_projects(
        self, user_id: str, filters: QueryFilters | None = None, limit: int | None = None
    ) -> list[ProjectRow]:
        return self.projects.query(user_id, filters or QueryFilters(), clamp_limit(limit))

    def query_files(self, user_id: str, filters: QueryFilters | None = None, limit: int | None = None) -> list[FileRow]:
        return self.files.query(user_id, filters or QueryFilters(), clamp_limit(limit))
