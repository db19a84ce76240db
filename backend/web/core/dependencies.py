"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Header, HTTPException, Request

from core.pipeline import ChatPipeline


async def get_pipeline(request: Request) -> ChatPipeline:
    """Get the chat pipeline built at startup."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(503, "Chat pipeline is not ready")
    return pipeline


async def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Authenticated user id, set by the upstream auth proxy."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(401, "X-User-Id header is required")
    return x_user_id.strip()
