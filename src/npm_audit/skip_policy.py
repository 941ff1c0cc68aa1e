"""Rules for lockfile entries the audit API cannot resolve."""

from __future__ import annotations

import logging
from typing import TypeAlias
from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

NODE_MODULES_DIRNAME = "node_modules"
NODE_MODULES_MARKER = NODE_MODULES_DIRNAME + "/"

# Version prefixes that point somewhere other than the npm registry.
_NON_REGISTRY_PREFIXES = (
    "file:",
    "link:",
    "./",
    "../",
    "/",
    "git:",
    "git+",
    "github:",
    "http://",
    "https://",
)

SkipPolicy: TypeAlias = Callable[[str, str], bool]


def should_skip_dependency(name: str, version: str) -> bool:
    """Return True when ``name``/``version`` is not a registry package.

    The root project of a v2+ lockfile is stored under an empty key, and
    linked or vendored packages carry a path or URL instead of a version.
    """
    if not name:
        return True
    return version.startswith(_NON_REGISTRY_PREFIXES)


def skip_names(names: Iterable[str], base: SkipPolicy = should_skip_dependency) -> SkipPolicy:
    """Compose ``base`` with an exclusion list of package names."""
    excluded = frozenset(names)
    if not excluded:
        return base

    def policy(name: str, version: str) -> bool:
        if name in excluded:
            logger.debug("Skipping %s@%s: excluded by configuration", name, version)
            return True
        return base(name, version)

    return policy
