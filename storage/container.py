"""Storage container with repo-level provider selection."""

from __future__ import annotations

import importlib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from .contracts import FileRepo, NoteRepo, ProjectRepo, TaskRepo
from .workspace import WorkspaceStore

StorageStrategy = Literal["sqlite", "supabase"]
RepoProviderMap = Mapping[str, str]

# @@@repo-registry - maps repo name → (module path, class name) per provider for generic dispatch.
_REPO_REGISTRY: dict[str, dict[str, tuple[str, str]]] = {
    "supabase": {
        "task_repo":    ("storage.providers.supabase.task_repo",    "SupabaseTaskRepo"),
        "note_repo":    ("storage.providers.supabase.note_repo",    "SupabaseNoteRepo"),
        "project_repo": ("storage.providers.supabase.project_repo", "SupabaseProjectRepo"),
        "file_repo":    ("storage.providers.supabase.file_repo",    "SupabaseFileRepo"),
    },
    "sqlite": {
        "task_repo":    ("storage.providers.sqlite.task_repo",    "SQLiteTaskRepo"),
        "note_repo":    ("storage.providers.sqlite.note_repo",    "SQLiteNoteRepo"),
        "project_repo": ("storage.providers.sqlite.project_repo", "SQLiteProjectRepo"),
        "file_repo":    ("storage.providers.sqlite.file_repo",    "SQLiteFileRepo"),
    },
}


class StorageContainer:
    """Composition root for workspace repos."""

    _SUPPORTED_STRATEGIES = {"sqlite", "supabase"}
    _REPO_NAMES = (
        "task_repo",
        "note_repo",
        "project_repo",
        "file_repo",
    )

    def __init__(
        self,
        main_db_path: str | Path | None = None,
        strategy: StorageStrategy = "sqlite",
        repo_providers: RepoProviderMap | None = None,
        supabase_client: Any | None = None,
    ) -> None:
        if strategy not in self._SUPPORTED_STRATEGIES:
            raise ValueError(
                f"Unsupported storage strategy: {strategy}. "
                f"Supported strategies: {', '.join(sorted(self._SUPPORTED_STRATEGIES))}"
            )
        self._main_db = Path(main_db_path) if main_db_path else Path.home() / ".chatkin" / "workspace.db"
        self._strategy: StorageStrategy = strategy
        self._supabase_client = supabase_client
        self._repo_providers = self._resolve_repo_providers(
            default_strategy=strategy,
            repo_providers=repo_providers,
        )

    def task_repo(self) -> TaskRepo:
        return self._build_repo("task_repo")

    def note_repo(self) -> NoteRepo:
        return self._build_repo("note_repo")

    def project_repo(self) -> ProjectRepo:
        return self._build_repo("project_repo")

    def file_repo(self) -> FileRepo:
        return self._build_repo("file_repo")

    def workspace_store(self) -> WorkspaceStore:
        """Build the collaborator-facing store over all four repos."""
        return WorkspaceStore(
            tasks=self.task_repo(),
            notes=self.note_repo(),
            projects=self.project_repo(),
            files=self.file_repo(),
        )

    def provider_for(self, repo_name: str) -> StorageStrategy:
        if repo_name not in self._REPO_NAMES:
            supported = ", ".join(self._REPO_NAMES)
            raise ValueError(f"Unknown repo name: {repo_name}. Supported repo names: {supported}")
        return self._repo_providers[repo_name]

    def _build_repo(self, name: str) -> Any:
        provider = self.provider_for(name)
        mod_path, cls_name = _REPO_REGISTRY[provider][name]
        cls = getattr(importlib.import_module(mod_path), cls_name)
        if provider == "supabase":
            if self._supabase_client is None:
                raise RuntimeError(
                    f"Supabase strategy {name} requires supabase_client. "
                    "Pass supabase_client=... into StorageContainer."
                )
            return cls(client=self._supabase_client)
        self._main_db.parent.mkdir(parents=True, exist_ok=True)
        return cls(db_path=self._main_db)

    @classmethod
    def _resolve_repo_providers(
        cls,
        *,
        default_strategy: StorageStrategy,
        repo_providers: RepoProviderMap | None,
    ) -> dict[str, StorageStrategy]:
        overrides: Mapping[str, Any] = repo_providers or {}
        unknown_repos = sorted(set(overrides.keys()) - set(cls._REPO_NAMES))
        if unknown_repos:
            supported = ", ".join(cls._REPO_NAMES)
            unknown = ", ".join(unknown_repos)
            raise ValueError(f"Unknown repo provider bindings: {unknown}. Supported repo names: {supported}")

        resolved: dict[str, StorageStrategy] = {name: default_strategy for name in cls._REPO_NAMES}
        # @@@repo-provider-override - only explicitly listed repos diverge from the default strategy.
        for repo_name, provider in overrides.items():
            if not isinstance(provider, str):
                raise ValueError(
                    f"Invalid provider value for {repo_name}: {provider!r}. Expected 'sqlite' or 'supabase'."
                )
            normalized = provider.strip().lower()
            if normalized not in cls._SUPPORTED_STRATEGIES:
                supported = ", ".join(sorted(cls._SUPPORTED_STRATEGIES))
                raise ValueError(
                    f"Unsupported provider for {repo_name}: {provider!r}. Supported providers: {supported}"
                )
            resolved[repo_name] = normalized
        return resolved
