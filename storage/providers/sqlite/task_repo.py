"""SQLite repository for workspace tasks."""

from __future__ import annotations

import json
import sqlite3
from typing import Any

from storage.models import QueryFilters, TaskRow
from storage.providers.sqlite._base import SQLiteRepoBase, like_pattern


class SQLiteTaskRepo(SQLiteRepoBase):
    _TABLE = "tasks"
    _ENTITY = "task"
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
    _JSON_COLUMNS = frozenset({"recurrence_pattern"})
    _BOOL_COLUMNS = frozenset({"is_all_day", "is_recurring"})

    def create(self, user_id: str, data: dict[str, Any]) -> TaskRow:
        return self._insert(user_id, data)

    def update(self, user_id: str, task_id: str, changes: dict[str, Any]) -> TaskRow:
        return self._update(user_id, task_id, changes)

    def delete(self, user_id: str, task_id: str) -> None:
        self._delete(user_id, task_id)

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[TaskRow]:
        where = ["user_id = ?"]
        params: list[Any] = [user_id]
        if filters.project_id:
            where.append("project_id = ?")
            params.append(filters.project_id)
        if filters.status:
            where.append("status = ?")
            params.append(filters.status)
        if filters.search_query:
            where.append("(title LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\')")
            needle = like_pattern(filters.search_query)
            params.extend([needle, needle])
        return self._select(where, params, "created_at", limit)

    def _hydrate(self, row: sqlite3.Row) -> TaskRow:
        pattern = row["recurrence_pattern"]
        return TaskRow(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            description=row["description"],
            priority=row["priority"],
            status=row["status"],
            due_date=row["due_date"],
            due_time=row["due_time"],
            is_all_day=bool(row["is_all_day"]),
            project_id=row["project_id"],
            is_recurring=bool(row["is_recurring"]),
            recurrence_pattern=json.loads(pattern) if pattern else None,
            recurrence_end_date=row["recurrence_end_date"],
            created_at=float(row["created_at"]),
            updated_at=float(row["updated_at"]),
        )

    def _ensure_table(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                priority TEXT NOT NULL DEFAULT 'medium',
                status TEXT NOT NULL DEFAULT 'todo',
                due_date TEXT,
                due_time TEXT,
                is_all_day INTEGER NOT NULL DEFAULT 1,
                project_id TEXT,
                is_recurring INTEGER NOT NULL DEFAULT 0,
                recurrence_pattern TEXT,
                recurrence_end_date TEXT,
                created_at REAL NOT NULL,
                updated_at REAL NOT NULL
            )
            """
        )
        self._conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id, created_at)")
        self._conn.commit()
