"""Build npm audit API payloads from parsed package-lock documents.

The payload maps every package name to the list of versions found in the
lockfile, e.g. ``{"lodash": ["4.17.21", "4.17.20"]}``. Versions are collected
into a caller-owned accumulator so several lockfiles can feed one payload.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any

from .skip_policy import NODE_MODULES_MARKER, SkipPolicy, should_skip_dependency

logger = logging.getLogger(__name__)


class ManifestError(ValueError):
    """Raised when a lockfile document does not have the expected shape."""


def _lockfile_version(manifest: Mapping[str, Any]) -> int:
    version = manifest.get("lockfileVersion", 1)
    # bool is an int subclass but never a valid lockfile version
    if isinstance(version, bool) or not isinstance(version, int):
        raise ManifestError(f"'lockfileVersion' must be an integer, got {version!r}")
    return version


def _select_dependencies(manifest: Mapping[str, Any]) -> Mapping[str, Any]:
    lock_version = _lockfile_version(manifest)
    dependencies = manifest.get("dependencies")
    field = "dependencies"
    if lock_version >= 2 and dependencies is None:
        logger.debug("lockfileVersion %d without 'dependencies'; reading 'packages'", lock_version)
        dependencies = manifest.get("packages")
        field = "packages"

    if dependencies is None:
        return {}
    if not isinstance(dependencies, Mapping):
        raise ManifestError(f"'{field}' must be an object, got {type(dependencies).__name__}")
    return dependencies


def normalise_key(key: str, marker: str = NODE_MODULES_MARKER) -> str:
    """Strip the install path from a lockfile key, keeping the package name.

    ``node_modules/a/node_modules/@scope/b`` becomes ``@scope/b``.
    """
    index = key.rfind(marker)
    if index >= 0:
        return key[index + len(marker) :]
    return key


def build(
    manifest: Mapping[str, Any],
    accumulator: MutableMapping[str, list[str]],
    skip_dev_dependencies: bool,
    *,
    skip_policy: SkipPolicy = should_skip_dependency,
    marker: str = NODE_MODULES_MARKER,
) -> dict[str, list[str]]:
    """Build an npm audit API payload.

    Params:
        manifest: the decoded package-lock.json document
        accumulator: package -> versions mapping, populated in place with
            every accepted entry; existing contents are kept
        skip_dev_dependencies: when True, entries flagged ``dev`` are ignored
        skip_policy: predicate on (name, version) excluding entries the
            audit API cannot resolve
        marker: install directory marker stripped from lockfile keys

    Returns: a new package -> versions mapping covering the whole accumulator

    Raises:
        ManifestError: if the manifest, its dependency mapping or one of its
            entries is not an object
    """
    if not isinstance(manifest, Mapping):
        raise ManifestError(f"Lockfile must be an object, got {type(manifest).__name__}")

    for key, entry in _select_dependencies(manifest).items():
        name = normalise_key(key, marker)
        if not isinstance(entry, Mapping):
            raise ManifestError(f"Entry '{key}' must be an object, got {type(entry).__name__}")

        # optional fields of the wrong type fall back to their defaults
        version = entry.get("version")
        if not isinstance(version, str):
            version = ""
        is_dev = entry.get("dev")
        if not isinstance(is_dev, bool):
            is_dev = False

        if skip_dev_dependencies and is_dev:
            logger.debug("Skipping dev dependency %s@%s", name, version)
            continue
        if skip_policy(name, version):
            logger.debug("Skipping %r@%r", name, version)
            continue

        accumulator.setdefault(name, []).append(version)

    return {name: list(versions) for name, versions in accumulator.items()}


def collect(
    manifest: Mapping[str, Any],
    skip_dev_dependencies: bool = False,
    *,
    skip_policy: SkipPolicy = should_skip_dependency,
) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    """Build a payload from a single manifest with a fresh accumulator.

    Returns ``(payload, accumulator)``.
    """
    accumulator: dict[str, list[str]] = {}
    payload = build(manifest, accumulator, skip_dev_dependencies, skip_policy=skip_policy)
    return payload, accumulator
