"""Tests for the audit payload builder."""

from __future__ import annotations

import pytest

from npm_audit.payload import ManifestError, build, collect, normalise_key


LODASH_V1 = {
    "lockfileVersion": 1,
    "dependencies": {
        "lodash": {"version": "4.17.21", "dev": False},
        "node_modules/lodash": {"version": "4.17.20", "dev": False},
    },
}


def test_duplicate_names_accumulate_in_order() -> None:
    accumulator: dict[str, list[str]] = {}
    payload = build(LODASH_V1, accumulator, False)

    assert payload == {"lodash": ["4.17.21", "4.17.20"]}
    assert accumulator == {"lodash": ["4.17.21", "4.17.20"]}


def test_skip_dev_dependencies() -> None:
    manifest = {
        "lockfileVersion": 1,
        "dependencies": {
            "lodash": {"version": "4.17.21", "dev": True},
            "node_modules/lodash": {"version": "4.17.20", "dev": False},
        },
    }
    assert build(manifest, {}, True) == {"lodash": ["4.17.20"]}
    assert build(manifest, {}, False) == {"lodash": ["4.17.21", "4.17.20"]}


def test_empty_manifest() -> None:
    accumulator: dict[str, list[str]] = {}
    assert build({}, accumulator, False) == {}
    assert accumulator == {}


def test_missing_mapping_returns_existing_accumulator() -> None:
    accumulator = {"left-pad": ["1.3.0"]}
    assert build({"lockfileVersion": 3}, accumulator, False) == {"left-pad": ["1.3.0"]}
    assert accumulator == {"left-pad": ["1.3.0"]}


def test_v1_ignores_packages() -> None:
    manifest = {"packages": {"node_modules/a": {"version": "1.0.0"}}}
    assert build(manifest, {}, False) == {}
    assert build({**manifest, "lockfileVersion": 1}, {}, False) == {}


def test_v2_falls_back_to_packages() -> None:
    manifest = {
        "lockfileVersion": 3,
        "packages": {
            "": {"name": "app", "version": "1.0.0"},
            "node_modules/express": {"version": "4.18.2"},
            "node_modules/express/node_modules/debug": {"version": "2.6.9"},
            "node_modules/debug": {"version": "4.3.4", "dev": True},
            "node_modules/@babel/core": {"version": "7.23.0", "dev": True},
        },
    }
    payload, _ = collect(manifest)
    assert payload == {
        "express": ["4.18.2"],
        "debug": ["2.6.9", "4.3.4"],
        "@babel/core": ["7.23.0"],
    }

    payload, _ = collect(manifest, skip_dev_dependencies=True)
    assert payload == {"express": ["4.18.2"], "debug": ["2.6.9"]}


def test_v2_prefers_dependencies_when_present() -> None:
    manifest = {
        "lockfileVersion": 2,
        "dependencies": {"a": {"version": "1.0.0"}},
        "packages": {"node_modules/b": {"version": "2.0.0"}},
    }
    assert build(manifest, {}, False) == {"a": ["1.0.0"]}


def test_missing_fields_default() -> None:
    manifest = {"dependencies": {"a": {}}}
    assert build(manifest, {}, True) == {"a": [""]}


def test_accumulator_spans_calls() -> None:
    accumulator: dict[str, list[str]] = {}
    build({"dependencies": {"a": {"version": "1.0.0"}}}, accumulator, False)
    payload = build({"dependencies": {"a": {"version": "1.0.0"}, "b": {"version": "2.0.0"}}}, accumulator, False)

    assert payload == {"a": ["1.0.0", "1.0.0"], "b": ["2.0.0"]}
    # The payload is a copy; mutating it leaves the accumulator alone.
    payload["a"].append("9.9.9")
    assert accumulator["a"] == ["1.0.0", "1.0.0"]


def test_custom_skip_policy_and_marker() -> None:
    seen: list[tuple[str, str]] = []

    def policy(name: str, version: str) -> bool:
        seen.append((name, version))
        return name == "b"

    manifest = {"dependencies": {"vendor/a": {"version": "1"}, "b": {"version": "2"}}}
    assert build(manifest, {}, False, skip_policy=policy, marker="vendor/") == {"a": ["1"]}
    assert seen == [("a", "1"), ("b", "2")]


def test_default_policy_skips_non_registry_versions() -> None:
    manifest = {
        "lockfileVersion": 2,
        "packages": {
            "node_modules/local": {"version": "file:../local"},
            "node_modules/forked": {"version": "git+https://github.com/x/forked.git"},
            "node_modules/real": {"version": "1.2.3"},
        },
    }
    assert build(manifest, {}, False) == {"real": ["1.2.3"]}


@pytest.mark.parametrize(
    "key, expected",
    [
        ("lodash", "lodash"),
        ("node_modules/lodash", "lodash"),
        ("node_modules/a/node_modules/b", "b"),
        ("packages/app/node_modules/@scope/pkg", "@scope/pkg"),
        ("", ""),
    ],
)
def test_normalise_key(key: str, expected: str) -> None:
    assert normalise_key(key) == expected


@pytest.mark.parametrize(
    "manifest",
    [
        [],
        {"lockfileVersion": "2"},
        {"dependencies": ["lodash"]},
        {"lockfileVersion": 2, "packages": "node_modules"},
        {"dependencies": {"lodash": "4.17.21"}},
    ],
)
def test_malformed_structure_is_fatal(manifest) -> None:
    with pytest.raises(ManifestError):
        build(manifest, {}, False)


def test_mistyped_optional_fields_default() -> None:
    assert build({"dependencies": {"a": {"version": 4}}}, {}, False) == {"a": [""]}
    assert build({"dependencies": {"a": {"version": None}}}, {}, False) == {"a": [""]}

    # A non-boolean dev flag counts as False, so the entry is kept.
    manifest = {"dependencies": {"a": {"version": "1.0.0", "dev": "yes"}}}
    assert build(manifest, {}, True) == {"a": ["1.0.0"]}
    manifest = {"dependencies": {"a": {"version": "1.0.0", "dev": 1}}}
    assert build(manifest, {}, True) == {"a": ["1.0.0"]}


def test_null_dependencies_falls_back_to_packages() -> None:
    manifest = {
        "lockfileVersion": 2,
        "dependencies": None,
        "packages": {"node_modules/a": {"version": "1.0.0"}},
    }
    assert build(manifest, {}, False) == {"a": ["1.0.0"]}


def test_malformed_entry_leaves_earlier_entries_accumulated() -> None:
    accumulator: dict[str, list[str]] = {}
    manifest = {"dependencies": {"a": {"version": "1.0.0"}, "b": None}}
    with pytest.raises(ManifestError, match="'b'"):
        build(manifest, accumulator, False)
    assert accumulator == {"a": ["1.0.0"]}
