"""Shared plumbing for Supabase workspace repos."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from storage.errors import NotFoundError, StoreError
from storage.providers.supabase import _query as q


class SupabaseRepoBase:
    """User-scoped insert/update/delete over one PostgREST table.

    Subclasses set ``_TABLE``, ``_ENTITY``, ``_REPO``, ``_COLUMNS`` and
    implement ``_hydrate``.
    """

    _TABLE = ""
    _ENTITY = ""
    _REPO = ""
    _COLUMNS: tuple[str, ...] = ()
    _TOUCH_UPDATED_AT = True

    def __init__(self, client: Any) -> None:
        self._client = q.validate_client(client, self._REPO)

    def close(self) -> None:
        return None

    def _hydrate(self, row: dict[str, Any], operation: str) -> Any:
        raise NotImplementedError

    def _insert(self, user_id: str, values: dict[str, Any]) -> Any:
        payload = {k: v for k, v in values.items() if k in self._COLUMNS}
        payload["user_id"] = user_id
        inserted = self._run(self._t().insert(payload), "create")
        if not inserted:
            raise StoreError(
                f"Supabase {self._REPO} expected inserted row for create. Check table permissions."
            )
        return self._hydrate(inserted[0], "create")

    def _update(self, user_id: str, row_id: str, changes: dict[str, Any]) -> Any:
        payload = {k: v for k, v in changes.items() if k in self._COLUMNS}
        if self._TOUCH_UPDATED_AT:
            payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        updated = self._run(self._t().update(payload).eq("id", row_id).eq("user_id", user_id), "update")
        if not updated:
            raise NotFoundError(self._ENTITY, row_id)
        return self._hydrate(updated[0], "update")

    def _delete(self, user_id: str, row_id: str) -> None:
        deleted = self._run(self._t().delete().eq("id", row_id).eq("user_id", user_id), "delete")
        if not deleted:
            raise NotFoundError(self._ENTITY, row_id)

    def _run(self, query: Any, operation: str) -> list[dict[str, Any]]:
        try:
            response = query.execute()
        except Exception as exc:
            raise StoreError(f"Supabase {self._REPO} {operation} failed: {exc}") from exc
        try:
            return q.rows(response, self._REPO, operation)
        except RuntimeError as exc:
            raise StoreError(str(exc)) from exc

    def _t(self) -> Any:
        return self._client.table(self._TABLE)

    def _require(self, row: dict[str, Any], operation: str, *fields: str) -> None:
        missing = [f for f in fields if row.get(f) is None]
        if missing:
            raise StoreError(
                f"Supabase {self._REPO} expected non-null {', '.join(missing)} in {operation} row. "
                f"Check {self._TABLE} table schema."
            )


def timestamp(value: Any) -> float:
    """Normalize PostgREST timestamptz strings (or epoch numbers) to epoch seconds."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).replace("Z", "+00:00")
    return datetime.fromisoformat(text).timestamp()
