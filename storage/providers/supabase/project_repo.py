"""Supabase repository for workspace projects (domains)."""

from __future__ import annotations

from typing import Any

from storage.models import ProjectRow, QueryFilters
from storage.providers.supabase import _query as q
from storage.providers.supabase._base import SupabaseRepoBase, timestamp


class SupabaseProjectRepo(SupabaseRepoBase):
    _TABLE = "projects"
    _ENTITY = "project"
    _REPO = "project repo"
    _COLUMNS = ("name", "description", "color", "is_archived")

    def create(self, user_id: str, data: dict[str, Any]) -> ProjectRow:
        return self._insert(user_id, data)

    def update(self, user_id: str, project_id: str, changes: dict[str, Any]) -> ProjectRow:
        return self._update(user_id, project_id, changes)

    def delete(self, user_id: str, project_id: str) -> None:
        self._delete(user_id, project_id)

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[ProjectRow]:
        query = self._t().select("*").eq("user_id", user_id)
        if not filters.include_archived:
            query = query.eq("is_archived", False)
        if filters.search_query:
            query = q.ilike_any(query, ("name", "description"), filters.search_query, self._REPO, "query")
        query = q.limit(q.order(query, "updated_at", desc=True, repo=self._REPO, operation="query"), limit, self._REPO, "query")
        return [self._hydrate(row, "query") for row in self._run(query, "query")]

    def _hydrate(self, row: dict[str, Any], operation: str) -> ProjectRow:
        self._require(row, operation, "id", "user_id", "name")
        return ProjectRow(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            name=str(row["name"]),
            description=row.get("description"),
            color=row.get("color"),
            is_archived=bool(row.get("is_archived", False)),
            created_at=timestamp(row.get("created_at")),
            updated_at=timestamp(row.get("updated_at")),
        )
