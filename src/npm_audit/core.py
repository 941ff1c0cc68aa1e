"""Repository-level entrypoints.

This module MUST NOT send anything over the network; callers submit the
payload to the audit API themselves.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from collections.abc import Iterable

from jsonschema import Draft202012Validator

from .config import Settings, load_settings
from .lockfile import discover_lockfiles, load_lockfile
from .payload import build

logger = logging.getLogger(__name__)

PAYLOAD_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "npm audit payload",
    "type": "object",
    "additionalProperties": {
        "type": "array",
        "items": {"type": "string"},
    },
}


class PayloadError(ValueError):
    """Raised when a payload does not match the audit payload schema."""


def build_repository_payload(
    root: Path,
    settings: Settings | None = None,
) -> dict[str, list[str]]:
    """Build one payload from every lockfile found under ``root``.

    Versions from all lockfiles are collected into a single accumulator, so a
    package used by several projects lists each of their versions.
    """
    settings = settings or load_settings()
    return build_lockfiles_payload(discover_lockfiles(root), settings)


def build_lockfiles_payload(
    paths: Iterable[Path],
    settings: Settings,
) -> dict[str, list[str]]:
    """Build one payload from the given lockfiles, in order."""
    policy = settings.skip_policy()
    accumulator: dict[str, list[str]] = {}
    payload: dict[str, list[str]] = {}

    for path in paths:
        logger.info("Reading %s", path)
        payload = build(
            load_lockfile(path),
            accumulator,
            settings.skip_dev_dependencies,
            skip_policy=policy,
        )

    return payload


def _describe_location(path: Iterable[Any]) -> str:
    """Name the package (and version position) a schema error points at."""
    parts = list(path)
    if not parts:
        return "<payload>"
    package = str(parts[0])
    if len(parts) > 1:
        return f"package {package!r}, version #{parts[1]}"
    return f"package {package!r}"


def _format_errors(errors: Iterable) -> str:
    return "\n".join(f"- {_describe_location(e.path)}: {e.message}" for e in errors)


def validate_payload(payload: Any) -> None:
    """Raise PayloadError unless ``payload`` is a valid audit payload."""
    validator = Draft202012Validator(PAYLOAD_SCHEMA)
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        raise PayloadError("\n" + _format_errors(errors))
