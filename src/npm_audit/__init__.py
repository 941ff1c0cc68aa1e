"""npm-audit payload builder package.

This package turns npm lockfiles into request payloads for the npm audit API.
Transport of the payload is left to the caller.
"""

from .payload import ManifestError, build, collect
from .skip_policy import NODE_MODULES_MARKER, should_skip_dependency

__all__ = [
    "ManifestError",
    "NODE_MODULES_MARKER",
    "build",
    "collect",
    "should_skip_dependency",
]
