"""Shared plumbing for SQLite workspace repos."""

from __future__ import annotations

import json
import sqlite3
import time
import uuid
from pathlib import Path
from typing import Any

from storage.errors import NotFoundError, StoreError


class SQLiteRepoBase:
    """Connection ownership plus generic user-scoped update/delete.

    Subclasses set ``_TABLE``, ``_ENTITY``, ``_COLUMNS`` and implement
    ``_ensure_table`` and ``_hydrate``.
    """

    _TABLE = ""
    _ENTITY = ""
    _COLUMNS: tuple[str, ...] = ()
    _JSON_COLUMNS: frozenset[str] = frozenset()
    _BOOL_COLUMNS: frozenset[str] = frozenset()
    _TOUCH_UPDATED_AT = True

    def __init__(self, db_path: str | Path, conn: sqlite3.Connection | None = None) -> None:
        self._own_conn = conn is None
        if conn is not None:
            self._conn = conn
        else:
            # Shared across FastAPI worker threads; writes are single-writer per user.
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_table()

    def close(self) -> None:
        if self._own_conn:
            self._conn.close()

    def _ensure_table(self) -> None:
        raise NotImplementedError

    def _hydrate(self, row: sqlite3.Row) -> Any:
        raise NotImplementedError

    def _insert(self, user_id: str, values: dict[str, Any]) -> Any:
        now = time.time()
        row_id = str(uuid.uuid4())
        payload = {"id": row_id, "user_id": user_id, "created_at": now}
        if self._TOUCH_UPDATED_AT:
            payload["updated_at"] = now
        payload.update({k: self._encode(k, v) for k, v in values.items() if k in self._COLUMNS})
        cols = ", ".join(payload)
        marks = ", ".join("?" for _ in payload)
        try:
            self._conn.execute(f"INSERT INTO {self._TABLE} ({cols}) VALUES ({marks})", tuple(payload.values()))
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"SQLite {self._ENTITY} insert failed: {exc}") from exc
        return self._get(user_id, row_id)

    def _update(self, user_id: str, row_id: str, changes: dict[str, Any]) -> Any:
        updates = {k: self._encode(k, v) for k, v in changes.items() if k in self._COLUMNS}
        if self._TOUCH_UPDATED_AT:
            updates["updated_at"] = time.time()
        if not updates:
            return self._get(user_id, row_id)
        set_clause = ", ".join(f"{k} = ?" for k in updates)
        try:
            cursor = self._conn.execute(
                f"UPDATE {self._TABLE} SET {set_clause} WHERE id = ? AND user_id = ?",
                (*updates.values(), row_id, user_id),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"SQLite {self._ENTITY} update failed: {exc}") from exc
        if cursor.rowcount == 0:
            raise NotFoundError(self._ENTITY, row_id)
        return self._get(user_id, row_id)

    def _delete(self, user_id: str, row_id: str) -> None:
        try:
            cursor = self._conn.execute(
                f"DELETE FROM {self._TABLE} WHERE id = ? AND user_id = ?",
                (row_id, user_id),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"SQLite {self._ENTITY} delete failed: {exc}") from exc
        if cursor.rowcount == 0:
            raise NotFoundError(self._ENTITY, row_id)

    def _get(self, user_id: str, row_id: str) -> Any:
        row = self._conn.execute(
            f"SELECT * FROM {self._TABLE} WHERE id = ? AND user_id = ?",
            (row_id, user_id),
        ).fetchone()
        if row is None:
            raise NotFoundError(self._ENTITY, row_id)
        return self._hydrate(row)

    def _select(self, where: list[str], params: list[Any], order_by: str, limit: int) -> list[Any]:
        sql = f"SELECT * FROM {self._TABLE} WHERE {' AND '.join(where)} ORDER BY {order_by} DESC LIMIT ?"
        try:
            rows = self._conn.execute(sql, (*params, limit)).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"SQLite {self._ENTITY} query failed: {exc}") from exc
        return [self._hydrate(r) for r in rows]

    def _encode(self, column: str, value: Any) -> Any:
        if column in self._JSON_COLUMNS and value is not None:
            return json.dumps(value, ensure_ascii=False)
        if column in self._BOOL_COLUMNS and value is not None:
            return 1 if value else 0
        return value


def like_pattern(value: str, *, prefix: bool = False) -> str:
    """LIKE pattern matching ``value`` literally; pair with ``ESCAPE '\\'``."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{escaped}%" if prefix else f"%{escaped}%"
