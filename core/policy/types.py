"""Decisions a classification policy can return for one user message."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.context.builder import ChatMessage, WorkspaceSnapshot
from core.operations.types import Scope

OTHER_OPTION = "Other"

Mode = Literal["chat", "action"]


class Question(BaseModel):
    """Multiple-choice question; callers always offer an extra free-text "Other"."""

    model_config = ConfigDict(frozen=True)

    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=2, max_length=4)

    @field_validator("options", mode="before")
    @classmethod
    def drop_other(cls, v):
        if isinstance(v, list):
            return [o for o in v if not (isinstance(o, str) and o.strip().casefold() == OTHER_OPTION.casefold())]
        return v

    @property
    def choices(self) -> list[str]:
        return [*self.options, OTHER_OPTION]


class Clarify(BaseModel):
    kind: Literal["clarify"] = "clarify"
    questions: list[Question] = Field(min_length=2, max_length=4)


class Propose(BaseModel):
    kind: Literal["propose"] = "propose"
    summary: str = ""
    operations: list[dict[str, Any]] = Field(default_factory=list, description="Untrusted draft operations")


class Reply(BaseModel):
    kind: Literal["reply"] = "reply"
    text: str


Decision = Clarify | Propose | Reply


class ClassificationPolicy(Protocol):
    """External oracle deciding how to answer one message.

    Its output is untrusted: drafts in a ``Propose`` always go through the
    proposal assembler before anything reaches the user.
    """

    async def classify(
        self,
        message: str,
        scope: Scope,
        snapshot: WorkspaceSnapshot,
        mode: Mode,
        history: Sequence[ChatMessage],
    ) -> Decision: ...
