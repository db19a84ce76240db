"""Supabase repository for uploaded files."""

from __future__ import annotations

from typing import Any

from storage.models import FileRow, QueryFilters
from storage.providers.supabase import _query as q
from storage.providers.supabase._base import SupabaseRepoBase, timestamp


class SupabaseFileRepo(SupabaseRepoBase):
    _TABLE = "files"
    _ENTITY = "file"
    _REPO = "file repo"
    _COLUMNS = ("project_id",)
    _TOUCH_UPDATED_AT = False

    def update_project(self, user_id: str, file_id: str, project_id: str | None) -> FileRow:
        return self._update(user_id, file_id, {"project_id": project_id})

    def delete(self, user_id: str, file_id: str) -> None:
        # Storage objects are removed by the upload service; this drops the row only.
        self._delete(user_id, file_id)

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[FileRow]:
        query = self._t().select("*").eq("user_id", user_id)
        if filters.project_id:
            query = query.eq("project_id", filters.project_id)
        if filters.conversation_id:
            query = query.eq("conversation_id", filters.conversation_id)
        if filters.search_query:
            query = q.ilike_any(
                query, ("filename", "title", "description"), filters.search_query, self._REPO, "query"
            )
        if filters.mime_type_prefix:
            query = q.like(query, "mime_type", f"{filters.mime_type_prefix}%", self._REPO, "query")
        if filters.is_hidden_from_library is not None:
            query = query.eq("is_hidden_from_library", filters.is_hidden_from_library)
        query = q.limit(q.order(query, "created_at", desc=True, repo=self._REPO, operation="query"), limit, self._REPO, "query")
        return [self._hydrate(row, "query") for row in self._run(query, "query")]

    def _hydrate(self, row: dict[str, Any], operation: str) -> FileRow:
        self._require(row, operation, "id", "user_id", "filename")
        return FileRow(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            filename=str(row["filename"]),
            title=row.get("title"),
            description=row.get("description"),
            mime_type=row.get("mime_type"),
            size=int(row.get("size") or 0),
            project_id=row.get("project_id"),
            conversation_id=row.get("conversation_id"),
            is_hidden_from_library=bool(row.get("is_hidden_from_library", False)),
            created_at=timestamp(row.get("created_at")),
        )
