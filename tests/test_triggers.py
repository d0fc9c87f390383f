# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

import pytest

from crate_sweep.triggers import DEFAULT_TRIGGER, TriggerFilter, compile_glob, match_any


@pytest.mark.parametrize(
    "pattern, path, expected",
    [
        ("**/Cargo.toml", "Cargo.toml", True),
        ("**/Cargo.toml", "calr/Cargo.toml", True),
        ("**/Cargo.toml", "a/b/c/Cargo.toml", True),
        ("**/Cargo.toml", "calr/Cargo.toml.orig", False),
        ("**/src/**", "src/main.rs", True),
        ("**/src/**", "grepr/src/lib.rs", True),
        ("**/src/**", "grepr/source/lib.rs", False),
        ("*.md", "README.md", True),
        ("*.md", "docs/README.md", False),
        ("file?.rs", "file1.rs", True),
        ("file?.rs", "file/.rs", False),
        ("release/v1.0", "release/v1x0", False),
        ("releases/v[0-9]", "releases/v7", True),
        ("releases/v[0-9]", "releases/vx", False),
        ("releases/v[0-9]+", "releases/v10", True),
        ("releases/v[0-9]+", "releases/v", False),
        ("feature-a+", "feature-aaa", True),
        ("*+", "notes+", True),
    ],
)
def test_glob_semantics(pattern, path, expected):
    assert bool(compile_glob(pattern).fullmatch(path)) is expected


def test_last_matching_pattern_wins():
    patterns = ["**/src/**", "!**/src/generated/**"]

    assert match_any(patterns, "a/src/lib.rs")
    assert not match_any(patterns, "a/src/generated/bindings.rs")
    assert match_any(patterns + ["**/bindings.rs"], "a/src/generated/bindings.rs")


def test_pull_request_only_targets_main():
    assert DEFAULT_TRIGGER.matches("pull_request", "main")
    assert DEFAULT_TRIGGER.matches("pull_request", "refs/heads/main")
    assert not DEFAULT_TRIGGER.matches("pull_request", "develop")


def test_pull_request_ignores_path_filters():
    assert DEFAULT_TRIGGER.matches("pull_request", "main", ["README.md"])


def test_push_requires_matching_path():
    assert DEFAULT_TRIGGER.matches("push", "feature/x", ["wcr/src/main.rs"])
    assert DEFAULT_TRIGGER.matches("push", "main", ["README.md", "calr/tests/cli.rs"])
    assert DEFAULT_TRIGGER.matches("push", "main", ["./headr/Cargo.toml"])
    assert not DEFAULT_TRIGGER.matches("push", "main", ["README.md", ".github/workflows/rust_test.yml"])
    assert not DEFAULT_TRIGGER.matches("push", "main", [])


def test_tag_pushes_do_not_trigger():
    assert not DEFAULT_TRIGGER.matches("push", "refs/tags/v1.0.0", ["src/lib.rs"])


def test_unknown_events_do_not_trigger():
    assert not DEFAULT_TRIGGER.matches("schedule", "main", ["src/lib.rs"])


def test_push_without_path_filter():
    trigger = TriggerFilter(pull_request_branches=None, push_branches=("main",), push_paths=None)

    assert trigger.matches("push", "main")
    assert not trigger.matches("push", "feature")
    assert not trigger.matches("pull_request", "main")
