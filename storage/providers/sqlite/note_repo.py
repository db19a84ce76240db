"""SQLite repository for workspace notes."""

from __future__ import annotations

import sqlite3
from typing import Any

from storage.models import NoteRow, QueryFilters
from storage.providers.sqlite._base import SQLiteRepoBase, like_pattern


class SQLiteNoteRepo(SQLiteRepoBase):
    _TABLE = "notes"
    _ENTITY = "note"
    _COLUMNS = ("title", "content", "project_id")

    def create(self, user_id: str, data: dict[str, Any]) -> NoteRow:
        return self._insert(user_id, data)

    def update(self, user_id: str, note_id: str, changes: dict[str, Any]) -> NoteRow:
        return self._update(user_id, note_id, changes)

    def delete(self, user_id: str, note_id: str) -> None:
        self._delete(user_id, note_id)

    def query(self, user_id: str, filters: QueryFilters, limit: int) -> list[NoteRow]:
        where = ["user_id = ?"]
        params: list[Any] = [user_id]
        if filters.project_id:
            where.append("project_id = ?")
            params.append(filters.project_id)
        if filters.search_query:
            where.append("(title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\')")
            needle = like_pattern(filters.search_query)
            params.extend([needle, needle])
        return self._select(where, params, "updated_at", limit)

    def _hydrate(self, row: sqlite3.Row) -> NoteRow:
        return NoteRow(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            content=row["content"] or "",
            project_id=row["project_id"],
            created_at=float(row["created_at"]),
            updated_at=float(row["updated_at"]),
        )

    def _ensure_table(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS notes (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                title TEXT NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                project_id TEXT,
                created_at REAL NOT NULL,
                updated_at REAL NOT NULL
            )
            """
        )
        self._conn.execute("CREATE INDEX IF NOT EXISTS idx_notes_user ON notes(user_id, updated_at)")
        self._conn.commit()
