"""
Workspace Query Middleware - escape hatch beyond the context snapshot

Tools:
- query_tasks: Tasks filtered by project, status, or text
- query_notes: Notes filtered by project or text
- query_projects: Projects (archived ones only on request)
- query_files: Files filtered by project, conversation, text, or mime type

Every query is scoped to one user and bounded (default 50, capped at 100).
Failures are returned to the model as a JSON error payload, never raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict

from langchain_core.messages import ToolMessage

from storage.models import QueryFilters
from storage.workspace import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT, WorkspaceStore, clamp_limit

logger = logging.getLogger(__name__)

QUERY_TOOL_NAMES = ("query_tasks", "query_notes", "query_projects", "query_files")

_FILTER_KEYS = {
    "query_tasks": ("project_id", "status", "search_query"),
    "query_notes": ("project_id", "search_query"),
    "query_projects": ("search_query", "include_archived"),
    "query_files": ("project_id", "conversation_id", "search_query", "mime_type_prefix", "is_hidden_from_library"),
}

_RESULT_KEYS = {
    "query_tasks": "tasks",
    "query_notes": "notes",
    "query_projects": "projects",
    "query_files": "files",
}


def _schema(name: str, description: str, filters: dict[str, dict], limit_description: str) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {
                    "filters": {
                        "type": "object",
                        "properties": filters,
                        "description": "Optional filters",
                    },
                    "limit": {
                        "type": "integer",
                        "description": limit_description,
                    },
                },
            },
        },
    }


class WorkspaceQueryMiddleware:
    """
    Workspace Query Middleware - read-only workspace lookups for one user

    Features:
    - Supplies query_* tool schemas for the model to bind
    - Answers query_* tool calls from the WorkspaceStore
    - Keeps every query bounded and user-scoped
    """

    def __init__(
        self,
        store: WorkspaceStore,
        user_id: str,
        *,
        default_limit: int = DEFAULT_QUERY_LIMIT,
        max_limit: int = MAX_QUERY_LIMIT,
    ):
        self.store = store
        self.user_id = user_id
        self.default_limit = default_limit
        self.max_limit = max_limit

    def get_tool_schemas(self) -> list[dict]:
        """Get query tool schemas."""
        limit_description = f"Max results (default {self.default_limit}, max {self.max_limit})"
        project_id = {"type": "string", "description": "Only items in this project (use ids from the context)"}
        search_query = {"type": "string", "description": "Case-insensitive text search"}
        return [
            _schema(
                "query_tasks",
                "Get tasks beyond the workspace snapshot. Use when the user refers to tasks not listed in context.",
                {
                    "project_id": project_id,
                    "status": {
                        "type": "string",
                        "enum": ["todo", "in_progress", "completed"],
                        "description": "Only tasks with this status",
                    },
                    "search_query": {**search_query, "description": "Search in title and description"},
                },
                limit_description,
            ),
            _schema(
                "query_notes",
                "Get notes beyond the workspace snapshot.",
                {
                    "project_id": project_id,
                    "search_query": {**search_query, "description": "Search in title and content"},
                },
                limit_description,
            ),
            _schema(
                "query_projects",
                "Get the user's projects (domains) with their ids.",
                {
                    "search_query": {**search_query, "description": "Search in name and description"},
                    "include_archived": {"type": "boolean", "description": "Include archived projects"},
                },
                limit_description,
            ),
            _schema(
                "query_files",
                "Search the user's uploaded files.",
                {
                    "project_id": project_id,
                    "conversation_id": {"type": "string", "description": "Files attached in this conversation"},
                    "search_query": {**search_query, "description": "Search in filename, title and description"},
                    "mime_type_prefix": {"type": "string", "description": "e.g. 'image/' or 'application/pdf'"},
                    "is_hidden_from_library": {"type": "boolean", "description": "Filter by library visibility"},
                },
                limit_description,
            ),
        ]

    def handle_tool_call(self, tool_call: dict) -> ToolMessage:
        """Run one query tool call and wrap the JSON result in a ToolMessage."""
        tool_name = tool_call.get("name", "")
        tool_id = tool_call.get("id", "")
        args = tool_call.get("args") or {}

        try:
            result = self._run_query(tool_name, args)
        except Exception as e:
            logger.warning("Query tool %s failed: %s", tool_name, e)
            result = {
                "error": True,
                "message": f"Query failed: {e}. Please try again or refine your query.",
                "details": str(e),
            }

        content = json.dumps(result, ensure_ascii=False, indent=2, default=str)
        return ToolMessage(content=content, tool_call_id=tool_id, name=tool_name)

    def _run_query(self, tool_name: str, args: dict) -> dict:
        if tool_name not in QUERY_TOOL_NAMES:
            raise ValueError(f"Unknown query tool: {tool_name}")

        raw_filters = args.get("filters") or {}
        if not isinstance(raw_filters, dict):
            raise ValueError("filters must be an object")
        filters = QueryFilters(**{k: raw_filters[k] for k in _FILTER_KEYS[tool_name] if k in raw_filters})

        raw_limit = args.get("limit")
        if raw_limit is not None and not isinstance(raw_limit, int):
            raise ValueError("limit must be an integer")
        limit = clamp_limit(raw_limit, default=self.default_limit, ceiling=self.max_limit)

        query = getattr(self.store, tool_name)
        rows = query(self.user_id, filters, limit)
        logger.debug("%s returned %d rows for %s", tool_name, len(rows), self.user_id)
        return {"count": len(rows), _RESULT_KEYS[tool_name]: [asdict(row) for row in rows]}
