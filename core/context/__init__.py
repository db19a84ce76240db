"""Workspace context - bounded snapshot of the user's workspace for one turn."""

from .builder import ChatMessage, WorkspaceContextBuilder, WorkspaceSnapshot, format_for_model

__all__ = [
    "ChatMessage",
    "WorkspaceContextBuilder",
    "WorkspaceSnapshot",
    "format_for_model",
]
