"""Core configuration schema for Chatkin using Pydantic.

This module defines the complete configuration structure with:
- Nested config groups (API, Context, Assembly, Notifications, Storage)
- Per-mode model parameters (chat vs action)
- Field validators for limits, domains, keywords
- API key fallback to environment variables
"""

from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

# Default model used across the codebase (single source of truth)
DEFAULT_MODEL = "claude-3-5-haiku-20241022"

DEFAULT_DOMAINS = ["Body", "Mind", "Purpose", "Connection", "Growth", "Finance"]

DEFAULT_INSIGHT_KEYWORDS = [
    "I noticed",
    "I recommend",
    "pattern detected",
    "insight",
    "found that",
    "discovered",
    "analyzed",
    "trend",
    "suggest",
]

# ============================================================================
# API Configuration
# ============================================================================


class ModeParams(BaseModel):
    """Model parameters for one conversation mode."""

    temperature: float = Field(0.3, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(4096, gt=0, description="Max output tokens")


class APIConfig(BaseModel):
    """API configuration for the classification model."""

    model: str = Field(DEFAULT_MODEL, description="Model name passed to init_chat_model")
    model_provider: str | None = Field("anthropic", description="Explicit provider (anthropic/openai/etc)")
    api_key: str | None = Field(None, description="API key (falls back to env vars)")
    base_url: str | None = Field(None, description="Base URL override")
    max_iterations: int = Field(5, gt=0, description="Tool-loop iterations before giving up")
    chat: ModeParams = Field(default_factory=lambda: ModeParams(temperature=0.7, max_tokens=2048))
    action: ModeParams = Field(default_factory=lambda: ModeParams(temperature=0.3, max_tokens=4096))


# ============================================================================
# Workspace context
# ============================================================================


class ContextConfig(BaseModel):
    """Bounds for the workspace snapshot handed to the model each turn."""

    max_projects: int = Field(6, gt=0, description="Projects (with ids) in the snapshot")
    max_tasks: int = Field(20, gt=0, description="Tasks in the snapshot")
    max_notes: int = Field(10, gt=0, description="Notes in the snapshot")
    history_window: int = Field(10, ge=0, description="Recent chat messages kept")
    query_default_limit: int = Field(50, gt=0, description="Default limit for query_* tools")
    query_max_limit: int = Field(100, gt=0, description="Hard ceiling for query_* tools")

    @model_validator(mode="after")
    def validate_query_limits(self) -> ContextConfig:
        if self.query_default_limit > self.query_max_limit:
            raise ValueError("query_default_limit cannot exceed query_max_limit")
        return self


# ============================================================================
# Proposal assembly
# ============================================================================


class AssemblyConfig(BaseModel):
    """Validation rules applied to every proposal."""

    fixed_domains: bool = Field(True, description="Projects are a fixed domain set (update description only)")
    domains: list[str] = Field(default_factory=lambda: list(DEFAULT_DOMAINS), description="Fixed domain names")
    title_max_chars: int = Field(50, gt=0, description="Task/note title and project name limit")
    description_max_chars: int = Field(200, gt=0, description="Project description limit")

    @field_validator("domains")
    @classmethod
    def validate_domains(cls, v: list[str]) -> list[str]:
        """Domain names must be unique ignoring case."""
        seen: set[str] = set()
        for name in v:
            key = name.strip().casefold()
            if not key:
                raise ValueError("Domain names cannot be empty")
            if key in seen:
                raise ValueError(f"Duplicate domain name: {name}")
            seen.add(key)
        return v


# ============================================================================
# Notifications
# ============================================================================


class NotificationConfig(BaseModel):
    """Proposal/insight notification triggers and delivery channel."""

    proposal_enabled: bool = True
    insight_enabled: bool = True
    insight_min_length: int = Field(100, ge=0, description="Replies at or below this length never notify")
    insight_keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_INSIGHT_KEYWORDS))
    body_max_chars: int = Field(200, gt=0, description="Insight body truncation")
    channel: Literal["log", "http"] = Field("log", description="Delivery channel")
    endpoint: str | None = Field(None, description="Delivery endpoint for the http channel")
    timeout_seconds: float = Field(5.0, gt=0)

    @field_validator("insight_keywords")
    @classmethod
    def validate_keywords(cls, v: list[str]) -> list[str]:
        cleaned = [k.strip() for k in v if k and k.strip()]
        if not cleaned:
            raise ValueError("insight_keywords cannot be empty")
        return cleaned

    @model_validator(mode="after")
    def validate_endpoint(self) -> NotificationConfig:
        if self.channel == "http" and not self.endpoint:
            raise ValueError("notifications.endpoint is required when channel is 'http'")
        return self


# ============================================================================
# Storage
# ============================================================================


class StorageConfig(BaseModel):
    """Workspace store provider selection."""

    strategy: Literal["sqlite", "supabase"] = "sqlite"
    db_path: str | None = Field(None, description="SQLite file (default ~/.chatkin/workspace.db)")
    repo_providers: dict[str, str] = Field(default_factory=dict, description="Per-repo provider overrides")
    supabase_client_factory: str | None = Field(None, description="'<module>:<callable>' building the client")


# ============================================================================
# Main Settings
# ============================================================================


class ChatkinSettings(BaseModel):
    """Main Chatkin configuration.

    Configuration priority (highest to lowest):
    1. Explicit overrides
    2. Project config (.chatkin/runtime.json)
    3. User config (~/.chatkin/runtime.json)
    4. System defaults (config/defaults/)
    5. Environment variables (for API keys)

    Note: This uses BaseModel instead of BaseSettings to avoid
    automatic environment variable loading conflicts with our
    three-tier config system.
    """

    api: APIConfig = Field(default_factory=APIConfig, description="API configuration")
    context: ContextConfig = Field(default_factory=ContextConfig, description="Workspace snapshot bounds")
    assembly: AssemblyConfig = Field(default_factory=AssemblyConfig, description="Proposal validation")
    notifications: NotificationConfig = Field(default_factory=NotificationConfig, description="Notifications")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Workspace storage")

    system_prompt: str | None = Field(None, description="Extra instructions appended to the system prompt")

    @model_validator(mode="after")
    def fill_api_key_from_env(self) -> ChatkinSettings:
        """Fill api_key/base_url from the environment when not configured.

        A missing key is not an error here; only the model-backed policy needs it.
        """
        if self.api.api_key is None:
            self.api.api_key = os.getenv("ANTHROPIC_API_KEY") or os.getenv("OPENAI_API_KEY")
        if self.api.base_url is None:
            self.api.base_url = os.getenv("ANTHROPIC_BASE_URL") or os.getenv("OPENAI_BASE_URL")
        return self

    def mode_params(self, mode: str) -> ModeParams:
        """Resolve model parameters for a conversation mode."""
        if mode == "chat":
            return self.api.chat
        if mode == "action":
            return self.api.action
        raise ValueError(f"Unknown mode: {mode}. Available: chat, action")
