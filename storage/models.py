"""Shared storage domain models: provider-neutral data types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class TaskRow:
    id: str
    user_id: str
    title: str
    description: str | None = None
    priority: str = "medium"
    status: str = "todo"
    due_date: str | None = None
    due_time: str | None = None
    is_all_day: bool = True
    project_id: str | None = None
    is_recurring: bool = False
    recurrence_pattern: dict[str, Any] | None = None
    recurrence_end_date: str | None = None
    created_at: float = 0.0
    updated_at: float = 0.0


@dataclass
class NoteRow:
    id: str
    user_id: str
    title: str
    content: str = ""
    project_id: str | None = None
    created_at: float = 0.0
    updated_at: float = 0.0


@dataclass
class ProjectRow:
    id: str
    user_id: str
    name: str
    description: str | None = None
    color: str | None = None
    is_archived: bool = False
    created_at: float = 0.0
    updated_at: float = 0.0


@dataclass
class FileRow:
    id: str
    user_id: str
    filename: str
    title: str | None = None
    description: str | None = None
    mime_type: str | None = None
    size: int = 0
    project_id: str | None = None
    conversation_id: str | None = None
    is_hidden_from_library: bool = False
    created_at: float = 0.0


@dataclass
class QueryFilters:
    """Filters accepted by the workspace query escape hatch."""

    project_id: str | None = None
    status: str | None = None
    search_query: str | None = None
    conversation_id: str | None = None
    mime_type_prefix: str | None = None
    is_hidden_from_library: bool | None = None
    include_archived: bool = False
