"""Agent middleware for Chatkin."""

from middleware.workspace_query import WorkspaceQueryMiddleware

__all__ = [
    "WorkspaceQueryMiddleware",
]
