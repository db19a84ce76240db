"""Chatkin Web Backend - FastAPI Application."""

import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.web.core.lifespan import lifespan
from backend.web.routers import chat
from core.errors import (
    AuthorizationError,
    PolicyError,
    TurnNotFoundError,
    TurnStateError,
    ValidationError,
)
from core.pipeline import ChatPipeline

_ERROR_STATUS: dict[type[Exception], int] = {
    TurnNotFoundError: 404,
    TurnStateError: 409,
    ValidationError: 422,
    AuthorizationError: 403,
    PolicyError: 502,
}


def _register_error_handlers(app: FastAPI) -> None:
    def _handler(status_code: int):
        async def handle(request: Request, exc: Exception) -> JSONResponse:
            return JSONResponse(
                status_code=status_code,
                content={"error": type(exc).__name__, "detail": str(exc)},
            )

        return handle

    for exc_type, status_code in _ERROR_STATUS.items():
        app.add_exception_handler(exc_type, _handler(status_code))


def create_app(pipeline: ChatPipeline | None = None) -> FastAPI:
    """Build the app; a pre-built pipeline skips config/storage wiring at startup."""
    app = FastAPI(title="Chatkin Web Backend", lifespan=lifespan)
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)
    app.include_router(chat.router)
    return app


app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("CHATKIN_BACKEND_PORT") or os.environ.get("PORT") or 8001)
    # @@@module-launch-target - Package-qualified target keeps module launch (`python -m backend.web.main`) import-safe.
    uvicorn.run("backend.web.main:app", host="0.0.0.0", port=port, reload=True)
