"""Supabase repository for workspace notes."""

from __future__ import annotations

from typing import Any

from storage.models import NoteRow, QueryFilters
from storage.providers.supabase import _query as q
from storage.providers.supabase._base import SupabaseRepoBase, timestamp


class SupabaseNoteRepo(SupabaseRepoBase):
    _TABLE = "notes"
    _ENTITY = "note"
    _REPO = "note repo"
    _COLUMNS = ("title", "content", "project_id")

    def create(self, user_id: str, data: dict[str, Any]) -> NoteRow:
        return self._insert(user_id, data)

    def update(self, user_id: str, note_id: str, changes: dict[str, Any]) -> NoteRow:
        return self._update(user_id, note_id, changes)

    def delete(self, user_id: str, note_id: str) -> None:
        self._delete(user_id, note_id)

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[NoteRow]:
        query = self._t().select("*").eq("user_id", user_id)
        if filters.project_id:
            query = query.eq("project_id", filters.project_id)
        if filters.search_query:
            query = q.ilike_any(query, ("title", "content"), filters.search_query, self._REPO, "query")
        query = q.limit(q.order(query, "updated_at", desc=True, repo=self._REPO, operation="query"), limit, self._REPO, "query")
        return [self._hydrate(row, "query") for row in self._run(query, "query")]

    def _hydrate(self, row: dict[str, Any], operation: str) -> NoteRow:
        self._require(row, operation, "id", "user_id")
        return NoteRow(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=row.get("title") or "Untitled",
            content=row.get("content") or "",
            project_id=row.get("project_id"),
            created_at=timestamp(row.get("created_at")),
            updated_at=timestamp(row.get("updated_at")),
        )
