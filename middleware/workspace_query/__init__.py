"""Workspace query middleware - bounded read access for the classification policy."""

from .middleware import QUERY_TOOL_NAMES, WorkspaceQueryMiddleware

__all__ = [
    "QUERY_TOOL_NAMES",
    "WorkspaceQueryMiddleware",
]
