"""Pydantic request models for the Chatkin web API."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from core.context.builder import ChatMessage
from core.operations.types import Scope


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    scope: Scope = Scope.GLOBAL
    mode: Literal["chat", "action"] = "action"
    project_id: str | None = None
    history: list[ChatMessage] = Field(default_factory=list)


class ToggleRequest(BaseModel):
    index: int


class EditOperationRequest(BaseModel):
    payload: dict[str, Any]
