# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

import os
import stat
from pathlib import Path
from types import SimpleNamespace

import pytest

FAKE_CARGO = """#!/usr/bin/env bash
if [ "$1" = "--version" ]; then
  echo "${FAKE_CARGO_VERSION:-cargo 1.78.0 (54d8815d0 2024-03-26)}"
  exit 0
fi
pwd -P >> "$CARGO_LOG"
echo "running 1 test in $(pwd -P)"
if [ -f .exit ]; then
  exit "$(cat .exit)"
fi
exit 0
"""

FAKE_RUSTUP = """#!/usr/bin/env bash
echo "$(pwd -P) $*" >> "$RUSTUP_LOG"
if [ -n "$RUSTUP_FAIL" ]; then
  echo "error: could not download toolchain" >&2
  exit 1
fi
exit 0
"""

FAKE_GIT = """#!/usr/bin/env bash
echo "$(pwd -P) $*" >> "$GIT_LOG"
if [ -n "$GIT_FAIL" ]; then
  echo "error: pathspec did not match" >&2
  exit 128
fi
exit 0
"""


def _install(bin_dir: Path, name: str, body: str) -> None:
    path = bin_dir / name
    path.write_text(body)
    path.chmod(stat.S_IRWXU)


@pytest.fixture
def fake_tools(tmp_path, monkeypatch):
    """Put fake cargo, rustup and git on PATH; each appends its calls to a log."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    _install(bin_dir, "cargo", FAKE_CARGO)
    _install(bin_dir, "rustup", FAKE_RUSTUP)
    _install(bin_dir, "git", FAKE_GIT)

    logs = SimpleNamespace(
        bin_dir=bin_dir,
        cargo=tmp_path / "cargo.log",
        rustup=tmp_path / "rustup.log",
        git=tmp_path / "git.log",
    )
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ['PATH']}")
    monkeypatch.setenv("CARGO_LOG", str(logs.cargo))
    monkeypatch.setenv("RUSTUP_LOG", str(logs.rustup))
    monkeypatch.setenv("GIT_LOG", str(logs.git))
    monkeypatch.delenv("RUSTUP_FAIL", raising=False)
    monkeypatch.delenv("GIT_FAIL", raising=False)
    return logs


@pytest.fixture
def tree(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    return root


def make_project(root: Path, relative: str, exit_code: int = 0) -> Path:
    project = root / relative
    project.mkdir(parents=True, exist_ok=True)
    (project / "Cargo.toml").write_text(f'[package]\nname = "{project.name}"\nversion = "0.1.0"\n')
    if exit_code:
        (project / ".exit").write_text(f"{exit_code}\n")
    return project


def read_lines(path: Path):
    if not path.exists():
        return []
    return path.read_text().splitlines()
