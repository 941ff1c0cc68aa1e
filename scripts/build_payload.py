#!/usr/bin/env python3
"""Build an npm audit API payload from package-lock.json files.

Usage:
  python scripts/build_payload.py --root . [--skip-dev] [--config settings.json]
  python scripts/build_payload.py --lockfile path/to/package-lock.json [--output payload.json]

The payload is printed as JSON; submitting it to the audit API is up to the caller.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from npm_audit.config import ConfigError, load_settings
from npm_audit.core import (
    PayloadError,
    build_lockfiles_payload,
    build_repository_payload,
    validate_payload,
)
from npm_audit.payload import ManifestError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--root", type=Path, default=Path("."), help="Directory to search for lockfiles")
    source.add_argument("--lockfile", type=Path, action="append", help="Lockfile to read (repeatable)")
    parser.add_argument("--skip-dev", action="store_true", help="Ignore devDependencies")
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON settings file")
    parser.add_argument("--output", type=Path, default=None, help="Write the payload here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.config)
        if args.skip_dev:
            settings = replace(settings, skip_dev_dependencies=True)

        if args.lockfile:
            payload = build_lockfiles_payload(args.lockfile, settings)
        else:
            payload = build_repository_payload(args.root, settings)
        validate_payload(payload)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except ManifestError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except PayloadError as exc:
        print(f"ERROR: Payload failed validation:{exc}", file=sys.stderr)
        return 1

    text = json.dumps(payload, indent=2)
    if args.output:
        try:
            args.output.write_text(text + "\n", encoding="utf-8")
        except OSError as exc:
            print(f"ERROR: Failed to write payload: {exc}", file=sys.stderr)
            return 1
    else:
        print(text)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
