"""Supabase repository for workspace tasks."""

from __future__ import annotations

import json
from typing import Any

from storage.errors import StoreError
from storage.models import QueryFilters, TaskRow
from storage.providers.supabase import _query as q
from storage.providers.supabase._base import SupabaseRepoBase, timestamp


class SupabaseTaskRepo(SupabaseRepoBase):
    _TABLE = "tasks"
    _ENTITY = "task"
    _REPO = "task repo"
    _COLUMNS = (
        "title",
        "description",
        "priority",
        "status",
        "due_date",
        "due_time",
        "is_all_day",
        "project_id",
        "is_recurring",
        "recurrence_pattern",
        "recurrence_end_date",
    )

    def create(self, user_id: str, data: dict[str, Any]) -> TaskRow:
        return self._insert(user_id, data)

    def update(self, user_id: str, task_id: str, changes: dict[str, Any]) -> TaskRow:
        return self._update(user_id, task_id, changes)

    def delete(self, user_id: str, task_id: str) -> None:
        self._delete(user_id, task_id)

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[TaskRow]:
        query = self._t().select("*").eq("user_id", user_id)
        if filters.project_id:
            query = query.eq("project_id", filters.project_id)
        if filters.status:
            query = query.eq("status", filters.status)
        if filters.search_query:
            query = q.ilike_any(query, ("title", "description"), filters.search_query, self._REPO, "query")
        query = q.limit(q.order(query, "created_at", desc=True, repo=self._REPO, operation="query"), limit, self._REPO, "query")
        return [self._hydrate(row, "query") for row in self._run(query, "query")]

    def _hydrate(self, row: dict[str, Any], operation: str) -> TaskRow:
        self._require(row, operation, "id", "user_id", "title")
        pattern = row.get("recurrence_pattern")
        if isinstance(pattern, str):
            try:
                pattern = json.loads(pattern)
            except json.JSONDecodeError as exc:
                raise StoreError(
                    f"Supabase task repo expected valid JSON in recurrence_pattern ({operation}): {exc}."
                ) from exc
        return TaskRow(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=str(row["title"]),
            description=row.get("description"),
            priority=row.get("priority") or "medium",
            status=row.get("status") or "todo",
            due_date=row.get("due_date"),
            due_time=row.get("due_time"),
            is_all_day=bool(row.get("is_all_day", True)),
            project_id=row.get("project_id"),
            is_recurring=bool(row.get("is_recurring", False)),
            recurrence_pattern=pattern,
            recurrence_end_date=row.get("recurrence_end_date"),
            created_at=timestamp(row.get("created_at")),
            updated_at=timestamp(row.get("updated_at")),
        )
