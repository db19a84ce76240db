"""SQLite repository for workspace projects (domains)."""

from __future__ import annotations

import sqlite3
from typing import Any

from storage.models import ProjectRow, QueryFilters
from storage.providers.sqlite._base import SQLiteRepoBase, like_pattern


class SQLiteProjectRepo(SQLiteRepoBase):
    _TABLE = "projects"
    _ENTITY = "project"
    _COLUMNS = ("name", "description", "color", "is_archived")
    _BOOL_COLUMNS = frozenset({"is_archived"})

    def create(self, user_id: str, data: dict[str, Any]) -> ProjectRow:
        return self._insert(user_id, data)

    def update(self, user_id: str, project_id: str, changes: dict[str, Any]) -> ProjectRow:
        return self._update(user_id, project_id, changes)

    def delete(self, user_id: str, project_id: str) -> None:
        self._delete(user_id, project_id)

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[ProjectRow]:
        where = ["user_id = ?"]
        params: list[Any] = [user_id]
        if not filters.include_archived:
            where.append("is_archived = 0")
        if filters.search_query:
            where.append("(name LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\')")
            needle = like_pattern(filters.search_query)
            params.extend([needle, needle])
        return self._select(where, params, "updated_at", limit)

    def _hydrate(self, row: sqlite3.Row) -> ProjectRow:
        return ProjectRow(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            description=row["description"],
            color=row["color"],
            is_archived=bool(row["is_archived"]),
            created_at=float(row["created_at"]),
            updated_at=float(row["updated_at"]),
        )

    def _ensure_table(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS projects (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                color TEXT,
                is_archived INTEGER NOT NULL DEFAULT 0,
                created_at REAL NOT NULL,
                updated_at REAL NOT NULL
            )
            """
        )
        self._conn.commit()
