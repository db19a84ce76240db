"""Repository contracts for workspace entities.

Every method is scoped to ``user_id``. Updates and deletes raise
``NotFoundError`` when the row does not exist for that user; backend faults
raise ``StoreError``.
"""

from __future__ import annotations

from typing import Any, Protocol

from storage.models import FileRow, NoteRow, ProjectRow, QueryFilters, TaskRow


class TaskRepo(Protocol):
    def close(self) -> None: ...

    def create(self, user_id: str, data: dict[str, Any]) -> TaskRow: ...

    def update(self, user_id: str, task_id: str, changes: dict[str, Any]) -> TaskRow: ...

    def delete(self, user_id: str, task_id: str) -> None: ...

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[TaskRow]: ...


class NoteRepo(Protocol):
    def close(self) -> None: ...

    def create(self, user_id: str, data: dict[str, Any]) -> NoteRow: ...

    def update(self, user_id: str, note_id: str, changes: dict[str, Any]) -> NoteRow: ...

    def delete(self, user_id: str, note_id: str) -> None: ...

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[NoteRow]: ...


class ProjectRepo(Protocol):
    def close(self) -> None: ...

    def create(self, user_id: str, data: dict[str, Any]) -> ProjectRow: ...

    def update(self, user_id: str, project_id: str, changes: dict[str, Any]) -> ProjectRow: ...

    def delete(self, user_id: str, project_id: str) -> None: ...

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[ProjectRow]: ...


class FileRepo(Protocol):
    """Files are created by the upload service, never by this pipeline."""

    def close(self) -> None: ...

    def update_project(self, user_id: str, file_id: str, project_id: str | None) -> FileRow: ...

    def delete(self, user_id: str, file_id: str) -> None: ...

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[FileRow]: ...
