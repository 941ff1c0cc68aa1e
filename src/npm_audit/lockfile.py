"""Locate and read npm lockfiles."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .payload import ManifestError
from .skip_policy import NODE_MODULES_DIRNAME

logger = logging.getLogger(__name__)

LOCKFILE_NAMES = {"package-lock.json", "npm-shrinkwrap.json"}
EXCLUDES = {NODE_MODULES_DIRNAME, ".git", ".venv"}


def load_lockfile(path: Path | str) -> dict[str, Any]:
    """Read and decode a package-lock.json (or npm-shrinkwrap.json).

    Raises:
        ManifestError: if the file cannot be read, is not valid JSON, or does
            not contain a JSON object.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Failed to read lockfile {path}: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid JSON in lockfile {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError(f"Lockfile {path} must contain a JSON object")

    return data


def discover_lockfiles(root: Path) -> list[Path]:
    """Find npm lockfiles recursively under root, skipping vendor directories."""
    root = root.resolve()
    found: list[Path] = []

    def should_skip(p: Path) -> bool:
        parts = set(p.parts)
        return any(ex in parts for ex in EXCLUDES)

    for path in root.rglob("*"):
        if path.name not in LOCKFILE_NAMES or not path.is_file():
            continue
        if should_skip(path.relative_to(root)):
            continue
        found.append(path)

    found.sort()
    logger.info("Discovered %d lockfile(s) under %s", len(found), root)
    return found
