"""Shared PostgREST query helpers for all Supabase repos."""

from __future__ import annotations

from typing import Any


def validate_client(client: Any, repo: str) -> Any:
    if client is None:
        raise RuntimeError(f"Supabase {repo} requires a client. Pass supabase_client=... into StorageContainer.")
    if not callable(getattr(client, "table", None)):
        raise RuntimeError(
            f"Supabase {repo} requires a client exposing table(name). Use supabase-py create_client()."
        )
    return client


def rows(response: Any, repo: str, operation: str) -> list[dict[str, Any]]:
    """Extract and validate the `.data` list from a supabase-py response."""
    if isinstance(response, dict):
        payload = response.get("data")
    else:
        payload = getattr(response, "data", None)
    if payload is None:
        raise RuntimeError(
            f"Supabase {repo} expected `.data` payload for {operation}. "
            "Check Supabase client compatibility."
        )
    if not isinstance(payload, list):
        raise RuntimeError(
            f"Supabase {repo} expected list payload for {operation}, got {type(payload).__name__}."
        )
    for row in payload:
        if not isinstance(row, dict):
            raise RuntimeError(
                f"Supabase {repo} expected dict row for {operation}, got {type(row).__name__}."
            )
    return payload


def order(query: Any, column: str, *, desc: bool, repo: str, operation: str) -> Any:
    if not hasattr(query, "order"):
        raise RuntimeError(
            f"Supabase {repo} expects query.order() for {operation}. Use supabase-py."
        )
    return query.order(column, desc=desc)


def limit(query: Any, value: int, repo: str, operation: str) -> Any:
    if not hasattr(query, "limit"):
        raise RuntimeError(
            f"Supabase {repo} expects query.limit() for {operation}. Use supabase-py."
        )
    return query.limit(value)


def ilike_any(query: Any, columns: tuple[str, ...], needle: str, repo: str, operation: str) -> Any:
    """OR together ``column.ilike.%needle%`` across columns."""
    if not hasattr(query, "or_"):
        raise RuntimeError(
            f"Supabase {repo} expects query.or_() for {operation}. Use supabase-py."
        )
    # PostgREST uses commas and parentheses as filter separators.
    cleaned = needle.replace(",", " ").replace("(", " ").replace(")", " ")
    return query.or_(",".join(f"{col}.ilike.%{cleaned}%" for col in columns))


def like(query: Any, column: str, pattern: str, repo: str, operation: str) -> Any:
    if not hasattr(query, "like"):
        raise RuntimeError(
            f"Supabase {repo} expects query.like() for {operation}. Use supabase-py."
        )
    return query.like(column, pattern)
