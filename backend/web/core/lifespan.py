"""Application lifespan management."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config import load_config
from core.pipeline import ChatPipeline
from storage.runtime import build_storage_container

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown."""
    # @@@injected-pipeline - tests (and embedders) may pre-wire app.state.pipeline; leave it alone then.
    if getattr(app.state, "pipeline", None) is not None:
        yield
        return

    settings = load_config(workspace_root=os.getenv("CHATKIN_WORKSPACE_ROOT"))
    container = build_storage_container(settings.storage)
    store = container.workspace_store()
    app.state.settings = settings
    app.state.pipeline = ChatPipeline.from_settings(settings, store)
    logger.info("Chat pipeline ready (storage=%s, model=%s)", settings.storage.strategy, settings.api.model)

    try:
        yield
    finally:
        app.state.pipeline = None
        try:
            store.close()
        except Exception as e:
            logger.warning("Store cleanup error: %s", e)
