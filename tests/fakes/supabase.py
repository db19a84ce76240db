"""In-memory fake Supabase client for unit tests.

Supports: select, insert, update, delete, eq, neq, or_ (ilike), like, order, limit.
Inserted rows get an ``id`` and ISO ``created_at``/``updated_at`` when missing,
as the database defaults would.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone


# Column defaults of the workspace tables.
WORKSPACE_DEFAULTS: dict[str, dict] = {
    "tasks": {"priority": "medium", "status": "todo", "is_all_day": True, "is_recurring": False},
    "notes": {"content": ""},
    "projects": {"is_archived": False},
    "files": {"size": 0, "is_hidden_from_library": False},
}


class FakeSupabaseResponse:
    def __init__(self, data: list[dict]):
        self.data = data


def _pattern(pattern: str, *, ignore_case: bool) -> re.Pattern:
    body = ".*".join(re.escape(part) for part in pattern.split("%"))
    return re.compile(f"^{body}$", re.IGNORECASE | re.DOTALL if ignore_case else re.DOTALL)


class FakeSupabaseQuery:
    def __init__(self, table_name: str, tables: dict[str, list[dict]], defaults: dict | None = None):
        self._table_name = table_name
        self._tables = tables
        self._defaults = defaults or {}
        self._filters: list[tuple[str, str, object]] = []  # (column, op, value)
        self._or_groups: list[list[tuple[str, re.Pattern]]] = []
        self._order_by: tuple[str, bool] | None = None
        self._limit_value: int | None = None
        self._insert_payload: dict | list[dict] | None = None
        self._update_payload: dict | None = None
        self._delete_requested = False
        self.fail_with: Exception | None = None

    def select(self, _columns: str):
        return self

    def insert(self, payload: dict | list[dict]):
        self._insert_payload = payload if isinstance(payload, list) else dict(payload)
        return self

    def update(self, payload: dict):
        self._update_payload = dict(payload)
        return self

    def delete(self):
        self._delete_requested = True
        return self

    def eq(self, column: str, value: object):
        self._filters.append((column, "eq", value))
        return self

    def neq(self, column: str, value: object):
        self._filters.append((column, "neq", value))
        return self

    def like(self, column: str, pattern: str):
        self._filters.append((column, "like", _pattern(pattern, ignore_case=False)))
        return self

    def or_(self, filters: str):
        group = []
        for part in filters.split(","):
            column, op, pattern = part.split(".", 2)
            if op != "ilike":
                raise ValueError(f"fake or_ supports ilike only, got {op}")
            group.append((column, _pattern(pattern, ignore_case=True)))
        self._or_groups.append(group)
        return self

    def order(self, column: str, desc: bool = False):
        self._order_by = (column, desc)
        return self

    def limit(self, value: int):
        self._limit_value = value
        return self

    def _match(self, row: dict) -> bool:
        for column, op, value in self._filters:
            cell = row.get(column)
            if op == "eq" and cell != value:
                return False
            if op == "neq" and cell == value:
                return False
            if op == "like" and not (isinstance(cell, str) and value.match(cell)):
                return False
        for group in self._or_groups:
            if not any(isinstance(row.get(c), str) and p.match(row[c]) for c, p in group):
                return False
        return True

    def execute(self) -> FakeSupabaseResponse:
        if self.fail_with is not None:
            raise self.fail_with
        table = self._tables.setdefault(self._table_name, [])

        # INSERT
        if self._insert_payload is not None:
            rows_to_insert = self._insert_payload if isinstance(self._insert_payload, list) else [self._insert_payload]
            inserted = []
            now = datetime.now(timezone.utc).isoformat()
            for payload in rows_to_insert:
                row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now, **self._defaults, **payload}
                table.append(row)
                inserted.append(dict(row))
            return FakeSupabaseResponse(inserted)

        # Filter
        matching = [r for r in table if self._match(r)]

        # ORDER (None sorts first)
        if self._order_by is not None:
            column, desc = self._order_by
            matching = sorted(
                matching,
                key=lambda r: (r.get(column) is not None, r.get(column) if r.get(column) is not None else 0),
                reverse=desc,
            )

        # LIMIT
        if self._limit_value is not None:
            matching = matching[: self._limit_value]

        # UPDATE
        if self._update_payload is not None:
            updated = []
            for row in table:
                if self._match(row):
                    row.update(self._update_payload)
                    updated.append(dict(row))
            return FakeSupabaseResponse(updated)

        # DELETE
        if self._delete_requested:
            self._tables[self._table_name] = [r for r in table if not self._match(r)]
            return FakeSupabaseResponse([dict(r) for r in matching])

        # SELECT
        return FakeSupabaseResponse([dict(r) for r in matching])


class FakeSupabaseClient:
    """In-memory Supabase client for tests.

    Args:
        tables: shared mutable dict of table_name -> list[dict].
        fail_tables: table names whose queries raise on execute.
        defaults: per-table column defaults applied on insert.
    """

    def __init__(
        self,
        tables: dict[str, list[dict]] | None = None,
        fail_tables: set[str] | None = None,
        defaults: dict[str, dict] | None = None,
    ):
        self._tables = tables if tables is not None else {}
        self._fail_tables = fail_tables or set()
        self._defaults = WORKSPACE_DEFAULTS if defaults is None else defaults

    def table(self, table_name: str) -> FakeSupabaseQuery:
        query = FakeSupabaseQuery(table_name, self._tables, self._defaults.get(table_name))
        if table_name in self._fail_tables:
            query.fail_with = RuntimeError(f"connection reset while querying {table_name}")
        return query
