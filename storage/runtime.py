"""Build the workspace storage container from the ``storage`` settings group."""

from __future__ import annotations

import importlib
import logging
import os
from collections.abc import Callable
from typing import Any

from config.schema import StorageConfig
from storage.container import StorageContainer

logger = logging.getLogger(__name__)


def build_storage_container(config: StorageConfig, supabase_client: Any | None = None) -> StorageContainer:
    """Container for ``config``. A Supabase client is only built when some repo is bound to Supabase."""
    if supabase_client is None and _wants_supabase(config):
        if config.supabase_client_factory:
            supabase_client = _load_factory(config.supabase_client_factory)()
        else:
            supabase_client = create_supabase_client()
    if supabase_client is not None and not callable(getattr(supabase_client, "table", None)):
        raise RuntimeError(f"Supabase client {type(supabase_client).__name__} has no callable table(name)")

    logger.info("Storage strategy %s (overrides: %s)", config.strategy, config.repo_providers or "none")
    return StorageContainer(
        main_db_path=config.db_path,
        strategy=config.strategy,
        repo_providers=config.repo_providers or None,
        supabase_client=supabase_client,
    )


def create_supabase_client():
    """Default client from SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY."""
    from supabase import create_client

    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    missing = [name for name, value in (("SUPABASE_URL", url), ("SUPABASE_SERVICE_ROLE_KEY", key)) if not value]
    if missing:
        # @@@no-sqlite-fallback - a half-configured Supabase setup must not quietly write to a local file.
        raise RuntimeError(f"Supabase storage needs {' and '.join(missing)}")
    return create_client(url, key)


def _wants_supabase(config: StorageConfig) -> bool:
    providers = {config.strategy, *(p.strip().lower() for p in config.repo_providers.values())}
    return "supabase" in providers


def _load_factory(ref: str) -> Callable[[], Any]:
    module_name, _, attr = ref.partition(":")
    if not module_name or not attr:
        raise RuntimeError(f"supabase_client_factory must be '<module>:<callable>', got {ref!r}")
    factory = getattr(importlib.import_module(module_name), attr, None)
    if not callable(factory):
        raise RuntimeError(f"supabase_client_factory {ref!r} is not callable")
    return factory
