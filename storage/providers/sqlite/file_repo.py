"""SQLite repository for uploaded files.

Rows are written by the upload service; ``register`` is the local stand-in
for that collaborator.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from storage.models import FileRow, QueryFilters
from storage.providers.sqlite._base import SQLiteRepoBase, like_pattern


class SQLiteFileRepo(SQLiteRepoBase):
    _TABLE = "files"
    _ENTITY = "file"
    _COLUMNS = (
        "filename",
        "title",
        "description",
        "mime_type",
        "size",
        "project_id",
        "conversation_id",
        "is_hidden_from_library",
    )
    _BOOL_COLUMNS = frozenset({"is_hidden_from_library"})
    _TOUCH_UPDATED_AT = False

    def register(self, user_id: str, data: dict[str, Any]) -> FileRow:
        return self._insert(user_id, data)

    def update_project(self, user_id: str, file_id: str, project_id: str | None) -> FileRow:
        return self._update(user_id, file_id, {"project_id": project_id})

    def delete(self, user_id: str, file_id: str) -> None:
        self._delete(user_id, file_id)

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[FileRow]:
        where = ["user_id = ?"]
        params: list[Any] = [user_id]
        if filters.project_id:
            where.append("project_id = ?")
            params.append(filters.project_id)
        if filters.conversation_id:
            where.append("conversation_id = ?")
            params.append(filters.conversation_id)
        if filters.search_query:
            where.append("(filename LIKE ? ESCAPE '\\' OR title LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\')")
            needle = like_pattern(filters.search_query)
            params.extend([needle, needle, needle])
        if filters.mime_type_prefix:
            where.append("mime_type LIKE ? ESCAPE '\\'")
            params.append(like_pattern(filters.mime_type_prefix, prefix=True))
        if filters.is_hidden_from_library is not None:
            where.append("is_hidden_from_library = ?")
            params.append(1 if filters.is_hidden_from_library else 0)
        return self._select(where, params, "created_at", limit)

    def _hydrate(self, row: sqlite3.Row) -> FileRow:
        return FileRow(
            id=row["id"],
            user_id=row["user_id"],
            filename=row["filename"],
            title=row["title"],
            description=row["description"],
            mime_type=row["mime_type"],
            size=int(row["size"] or 0),
            project_id=row["project_id"],
            conversation_id=row["conversation_id"],
            is_hidden_from_library=bool(row["is_hidden_from_library"]),
            created_at=float(row["created_at"]),
        )

    def _ensure_table(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS files (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                filename TEXT NOT NULL,
                title TEXT,
                description TEXT,
                mime_type TEXT,
                size INTEGER NOT NULL DEFAULT 0,
                project_id TEXT,
                conversation_id TEXT,
                is_hidden_from_library INTEGER NOT NULL DEFAULT 0,
                created_at REAL NOT NULL
            )
            """
        )
        self._conn.commit()
