"""Chat and turn lifecycle endpoints."""

import asyncio
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from backend.web.core.dependencies import get_pipeline, get_user_id
from backend.web.models.requests import ChatRequest, EditOperationRequest, ToggleRequest
from core.pipeline import ChatPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

Pipeline = Annotated[ChatPipeline, Depends(get_pipeline)]
UserId = Annotated[str, Depends(get_user_id)]


@router.post("/chat")
async def chat(payload: ChatRequest, pipeline: Pipeline, user_id: UserId) -> dict[str, Any]:
    """Classify one message; returns the assistant message for the new turn."""
    state = await pipeline.handle_message(
        user_id,
        payload.message,
        scope=payload.scope,
        mode=payload.mode,
        project_id=payload.project_id,
        history=payload.history,
    )
    return state.to_message()


@router.get("/turns/{turn_id}")
async def get_turn(turn_id: str, pipeline: Pipeline, user_id: UserId) -> dict[str, Any]:
    return pipeline.get(turn_id, user_id).to_message()


@router.post("/turns/{turn_id}/toggle")
async def toggle_operation(
    turn_id: str, payload: ToggleRequest, pipeline: Pipeline, user_id: UserId
) -> dict[str, Any]:
    state = await asyncio.to_thread(pipeline.toggle, turn_id, user_id, payload.index)
    return state.to_message()


@router.patch("/turns/{turn_id}/operations/{index}")
async def edit_operation(
    turn_id: str, index: int, payload: EditOperationRequest, pipeline: Pipeline, user_id: UserId
) -> dict[str, Any]:
    """Replace one operation's data/changes; the edit is re-validated."""
    state = await asyncio.to_thread(pipeline.edit, turn_id, user_id, index, payload.payload)
    return state.to_message()


@router.post("/turns/{turn_id}/confirm")
async def confirm_turn(turn_id: str, pipeline: Pipeline, user_id: UserId) -> dict[str, Any]:
    """Execute the selected operations."""
    state = await asyncio.to_thread(pipeline.confirm, turn_id, user_id)
    return state.to_message()


@router.post("/turns/{turn_id}/cancel")
async def cancel_turn(turn_id: str, pipeline: Pipeline, user_id: UserId) -> dict[str, Any]:
    # Waits on the turn lock while a confirm is running.
    state = await asyncio.to_thread(pipeline.cancel, turn_id, user_id)
    return state.to_message()
