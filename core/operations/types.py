"""Operation model: wire shape, typed payloads, and proposed operations.

``Operation`` is the untrusted draft exactly as the policy emits it.
``ProposedOperation`` is the validated, canonical form carrying a transient
``index`` that identifies it for the rest of the turn.
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class OperationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EntityType(str, Enum):
    TASK = "task"
    NOTE = "note"
    PROJECT = "project"
    FILE = "file"


class Scope(str, Enum):
    GLOBAL = "global"
    TASKS = "tasks"
    NOTES = "notes"
    PROJECT = "project"


SCOPE_TYPES: dict[Scope, frozenset[EntityType]] = {
    Scope.GLOBAL: frozenset(EntityType),
    Scope.TASKS: frozenset({EntityType.TASK}),
    Scope.NOTES: frozenset({EntityType.NOTE}),
    Scope.PROJECT: frozenset({EntityType.TASK, EntityType.NOTE}),
}

Priority = Literal["low", "medium", "high"]
TaskStatus = Literal["todo", "in_progress", "completed"]


def _check_date(value: str) -> str:
    if not _DATE_RE.match(value):
        raise ValueError(f"date must be YYYY-MM-DD, got {value!r}")
    date.fromisoformat(value)
    return value


def _check_time(value: str) -> str:
    if not _TIME_RE.match(value):
        raise ValueError(f"time must be 24-hour HH:MM, got {value!r}")
    return value


def _check_title(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("must not be blank")
    return stripped


Title = Annotated[str, AfterValidator(_check_title)]
IsoDate = Annotated[str, AfterValidator(_check_date)]
ClockTime = Annotated[str, AfterValidator(_check_time)]


# ============================================================================
# Wire shape
# ============================================================================


class Operation(BaseModel):
    """A single proposed create/update/delete, as it crosses the tool-call boundary."""

    model_config = ConfigDict(extra="forbid")

    operation: OperationKind
    type: EntityType
    id: str | None = None
    data: dict[str, Any] | None = None
    changes: dict[str, Any] | None = None
    reason: str | None = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"operation": self.operation.value, "type": self.type.value}
        for key in ("id", "data", "changes", "reason"):
            value = getattr(self, key)
            if value is not None:
                wire[key] = value
        return wire


# ============================================================================
# Typed payloads
# ============================================================================


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_store(self) -> dict[str, Any]:
        """Fields the backend should write. Create payloads dump in full, changes only what was set."""
        return self.model_dump(mode="json")


class _Changes(_Payload):
    # Fields the backend stores as NOT NULL; they may be left out but never set to null.
    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def require_some_field(self):
        if not self.model_fields_set:
            raise ValueError("changes must set at least one field")
        nulled = sorted(f for f in self.non_nullable & self.model_fields_set if getattr(self, f) is None)
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self

    def to_store(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class RecurrencePattern(_Payload):
    frequency: Literal["daily", "weekly", "monthly", "yearly"]
    interval: int = Field(1, ge=1)
    days_of_week: list[int] | None = None
    day_of_month: int | None = Field(None, ge=1, le=31)
    month_of_year: int | None = Field(None, ge=1, le=12)

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, v: list[int] | None) -> list[int] | None:
        if v is not None and any(d < 0 or d > 6 for d in v):
            raise ValueError("days_of_week entries must be 0-6")
        return v


class TaskData(_Payload):
    title: Title
    description: str | None = None
    priority: Priority = "medium"
    status: TaskStatus = "todo"
    due_date: IsoDate | None = None
    due_time: ClockTime | None = None
    is_all_day: bool | None = None
    project_id: str | None = None
    is_recurring: bool = False
    recurrence_pattern: RecurrencePattern | None = None
    recurrence_end_date: IsoDate | None = None

    @model_validator(mode="after")
    def resolve_all_day(self) -> TaskData:
        if self.due_time is not None and self.due_date is None:
            raise ValueError("due_time requires due_date")
        if self.is_all_day is None:
            self.is_all_day = self.due_time is None
        elif self.is_all_day and self.due_time is not None:
            raise ValueError("is_all_day cannot be true when due_time is set")
        if self.is_recurring and self.recurrence_pattern is None:
            raise ValueError("is_recurring requires recurrence_pattern")
        return self


class TaskChanges(_Changes):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"title", "priority", "status", "is_all_day", "is_recurring"})

    title: Title | None = None
    description: str | None = None
    priority: Priority | None = None
    status: TaskStatus | None = None
    due_date: IsoDate | None = None
    due_time: ClockTime | None = None
    is_all_day: bool | None = None
    project_id: str | None = None
    is_recurring: bool | None = None
    recurrence_pattern: RecurrencePattern | None = None
    recurrence_end_date: IsoDate | None = None

    @model_validator(mode="after")
    def check_time_flag(self) -> TaskChanges:
        if self.is_all_day and self.due_time is not None:
            raise ValueError("is_all_day cannot be true when due_time is set")
        if "due_time" in self.model_fields_set and "is_all_day" not in self.model_fields_set:
            # A time implies a timed task; clearing the time makes it all-day again.
            self.is_all_day = self.due_time is None
        return self


class NoteData(_Payload):
    title: Title
    content: str = ""
    project_id: str | None = None


class NoteChanges(_Changes):
    """Note content is immutable after creation; only title and project move."""

    non_nullable: ClassVar[frozenset[str]] = frozenset({"title"})

    title: Title | None = None
    project_id: str | None = None


class ProjectData(_Payload):
    name: Title
    description: str | None = None
    color: str | None = None


class ProjectChanges(_Changes):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name"})

    name: Title | None = None
    description: str | None = None
    color: str | None = None


class FileChanges(_Changes):
    """Files only move between projects; ``project_id=None`` detaches."""

    project_id: str | None


CreatePayload = TaskData | NoteData | ProjectData
ChangesPayload = TaskChanges | NoteChanges | ProjectChanges | FileChanges


# ============================================================================
# Canonical proposal
# ============================================================================


class ProposedOperation(BaseModel):
    """Validated operation with a transient index assigned at proposal time."""

    model_config = ConfigDict(frozen=True)

    index: int
    operation: OperationKind
    type: EntityType
    id: str | None = None
    data: CreatePayload | None = None
    changes: ChangesPayload | None = None
    reason: str | None = None

    def payload(self) -> dict[str, Any]:
        if self.data is not None:
            return self.data.to_store()
        if self.changes is not None:
            return self.changes.to_store()
        return {}

    def label(self) -> str:
        """Short user-facing name for result lines."""
        source = self.payload()
        name = source.get("title") or source.get("name")
        if name:
            return f'{self.type.value} "{name}"'
        if self.id:
            return f"{self.type.value} {self.id}"
        return self.type.value

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"operation": self.operation.value, "type": self.type.value}
        if self.id is not None:
            wire["id"] = self.id
        if self.data is not None:
            wire["data"] = self.data.to_store()
        if self.changes is not None:
            wire["changes"] = self.changes.to_store()
        if self.reason is not None:
            wire["reason"] = self.reason
        return wire

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, **self.to_wire()}


class Proposal(BaseModel):
    """Validated operations plus the generated summary sentence."""

    summary: str
    operations: list[ProposedOperation]
    rationale: str | None = Field(None, description="Summary text the policy supplied, for display only")

    @property
    def count(self) -> int:
        return len(self.operations)
