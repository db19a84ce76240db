"""Runtime configuration loader.

Configuration priority (highest to lowest):
1. Explicit overrides
2. Project config (.chatkin/runtime.json in workspace)
3. User config (~/.chatkin/runtime.json)
4. System defaults (config/defaults/runtime.json)
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from config.schema import ChatkinSettings

logger = logging.getLogger(__name__)

_GROUPS = ("api", "context", "assembly", "notifications", "storage")


class ConfigLoader:
    """Three-tier runtime config loader."""

    def __init__(self, workspace_root: str | Path | None = None):
        self.workspace_root = Path(workspace_root).resolve() if workspace_root else None
        self._system_defaults_dir = Path(__file__).parent / "defaults"

    def load(self, overrides: dict[str, Any] | None = None) -> ChatkinSettings:
        """Load runtime configuration with three-tier merge."""
        system_config = self._load_system_defaults()
        user_config = self._load_user_config()
        project_config = self._load_project_config()

        final_config: dict[str, Any] = {}
        for group in _GROUPS:
            final_config[group] = self._deep_merge(
                system_config.get(group, {}),
                user_config.get(group, {}),
                project_config.get(group, {}),
            )

        final_config["system_prompt"] = (
            project_config.get("system_prompt")
            or user_config.get("system_prompt")
            or system_config.get("system_prompt")
        )

        if overrides:
            final_config = self._deep_merge(final_config, overrides)

        final_config = self._expand_env_vars(final_config)
        final_config = self._remove_none_values(final_config)

        return ChatkinSettings(**final_config)

    # ── Internal helpers ──

    def _load_system_defaults(self) -> dict[str, Any]:
        """Load system defaults from runtime.json."""
        return self._load_json(self._system_defaults_dir / "runtime.json")

    def _load_user_config(self) -> dict[str, Any]:
        """Load user config from ~/.chatkin/runtime.json."""
        return self._load_json(Path.home() / ".chatkin" / "runtime.json")

    def _load_project_config(self) -> dict[str, Any]:
        """Load project config from .chatkin/runtime.json."""
        if not self.workspace_root:
            return {}
        return self._load_json(self.workspace_root / ".chatkin" / "runtime.json")

    @staticmethod
    def _load_json(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level must be an object", path)
            return {}
        return data

    def _deep_merge(self, *dicts: dict[str, Any]) -> dict[str, Any]:
        """Deep merge multiple dictionaries. Later dicts override earlier ones."""
        result: dict[str, Any] = {}
        for d in dicts:
            for key, value in d.items():
                if key not in result:
                    result[key] = value
                elif value is None:
                    continue
                elif isinstance(value, dict) and isinstance(result[key], dict):
                    result[key] = self._deep_merge(result[key], value)
                else:
                    result[key] = value
        return result

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR} and ~ in string values."""
        if isinstance(obj, dict):
            return {k: self._expand_env_vars(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [self._expand_env_vars(v) for v in obj]
        if isinstance(obj, str):
            return os.path.expandvars(os.path.expanduser(obj))
        return obj

    def _remove_none_values(self, obj: Any) -> Any:
        """Recursively remove None values to allow Pydantic defaults."""
        if isinstance(obj, dict):
            return {k: self._remove_none_values(v) for k, v in obj.items() if v is not None}
        if isinstance(obj, list):
            return [self._remove_none_values(v) for v in obj if v is not None]
        return obj


def load_config(
    workspace_root: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> ChatkinSettings:
    """Convenience function to load runtime configuration."""
    return ConfigLoader(workspace_root=workspace_root).load(overrides=overrides)
