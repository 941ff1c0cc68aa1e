"""Configuration loader for payload building.

Settings come from an optional JSON file and environment overrides::

    {
        "skipDevDependencies": true,
        "skipPackages": ["internal-tooling"]
    }

The file path is taken from the explicit argument, then the
``NPM_AUDIT_CONFIG`` environment variable. When neither is given the defaults
apply. ``NPM_AUDIT_SKIP_DEV`` overrides ``skipDevDependencies``.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .skip_policy import SkipPolicy, skip_names

CONFIG_PATH_ENV_VAR = "NPM_AUDIT_CONFIG"
SKIP_DEV_ENV_VAR = "NPM_AUDIT_SKIP_DEV"

_TRUTHY = {"1", "true", "yes", "y"}
_FALSY = {"0", "false", "no", "n"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be loaded or is invalid."""


@dataclass(slots=True, frozen=True)
class Settings:
    """Options applied when building payloads."""

    skip_dev_dependencies: bool = False
    skip_packages: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        skip_dev = data.get("skipDevDependencies", False)
        if not isinstance(skip_dev, bool):
            raise ConfigError("'skipDevDependencies' must be a boolean")

        skip_packages = data.get("skipPackages", [])
        if not isinstance(skip_packages, list) or not all(
            isinstance(name, str) and name for name in skip_packages
        ):
            raise ConfigError("'skipPackages' must be an array of non-empty strings")

        return cls(skip_dev_dependencies=skip_dev, skip_packages=tuple(skip_packages))

    def skip_policy(self) -> SkipPolicy:
        """Return the skip predicate including configured package exclusions."""
        return skip_names(self.skip_packages)


def _resolve_config_path(path: Path | str | None = None) -> Path | None:
    if path is not None:
        return Path(path)

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    return None


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return None
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ConfigError(f"{name} must be one of {sorted(_TRUTHY | _FALSY)}, got {raw!r}")


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from a JSON file and apply environment overrides.

    Raises:
        ConfigError: If an explicitly named file is missing, unreadable or
            contains invalid data.
    """
    config_path = _resolve_config_path(path)
    settings = Settings()

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Failed to read configuration file: {exc}") from exc

        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")

        settings = Settings.from_dict(data)

    skip_dev = _env_flag(SKIP_DEV_ENV_VAR)
    if skip_dev is not None:
        settings = replace(settings, skip_dev_dependencies=skip_dev)

    return settings
