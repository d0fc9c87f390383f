# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Find every project manifest under a tree and test each project in turn.

The sweep is sequential and fail-fast: the first project whose test command
exits non-zero ends the run, and projects after it are never started.
"""

from __future__ import annotations

import csv
import logging
import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TextIO

from crate_sweep.config import DEFAULT_MANIFEST
from crate_sweep.errors import ConfigError
from crate_sweep.triggers import match_any

logger = logging.getLogger(__name__)

COMMAND_NOT_EXECUTABLE = 126
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class Project:
    root: Path
    manifest: Path


@dataclass(frozen=True)
class ProjectResult:
    project: Project
    returncode: int

    @property
    def passed(self) -> bool:
        return self.returncode == 0


@dataclass
class SweepResult:
    tested: List[ProjectResult] = field(default_factory=list)
    failed: Optional[ProjectResult] = None
    fail_exit_code: Optional[int] = None

    @property
    def passed(self) -> bool:
        return self.failed is None

    @property
    def exit_code(self) -> int:
        if self.failed is None:
            return 0
        if self.fail_exit_code is not None:
            return self.fail_exit_code
        code = self.failed.returncode
        if code < 0:
            # killed by a signal
            return 128 + (-code)
        return code


def discover_projects(root: Path, manifest_name: str = DEFAULT_MANIFEST, exclude: Iterable[str] = ()) -> List[Project]:
    if not root.is_dir():
        raise ConfigError(f"sweep root {root} is not a directory")
    exclude = tuple(exclude)
    projects: List[Project] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        if manifest_name not in filenames:
            continue
        directory = Path(dirpath)
        if exclude:
            relative = directory.relative_to(root).as_posix()
            if match_any(exclude, relative):
                logger.debug("skipping excluded project %s", directory)
                continue
        projects.append(Project(root=directory, manifest=directory / manifest_name))
    projects.sort(key=lambda project: project.root.relative_to(root).parts)
    logger.debug("discovered %d project(s) under %s", len(projects), root)
    return projects


def run_project(project: Project, command: Sequence[str], stream: Optional[TextIO] = None) -> ProjectResult:
    stream = stream or sys.stdout
    print(f"Testing in {project.root}", file=stream, flush=True)
    try:
        # cwd scopes the directory change to the child process
        completed = subprocess.run(list(command), cwd=project.root, check=False)
    except FileNotFoundError:
        print(f"{command[0]}: command not found", file=sys.stderr, flush=True)
        return ProjectResult(project, COMMAND_NOT_FOUND)
    except PermissionError:
        print(f"{command[0]}: permission denied", file=sys.stderr, flush=True)
        return ProjectResult(project, COMMAND_NOT_EXECUTABLE)
    return ProjectResult(project, completed.returncode)


def sweep(
    root: Path,
    command: Sequence[str],
    manifest_name: str = DEFAULT_MANIFEST,
    exclude: Iterable[str] = (),
    fail_exit_code: Optional[int] = None,
    stream: Optional[TextIO] = None,
) -> SweepResult:
    result = SweepResult(fail_exit_code=fail_exit_code)
    for project in discover_projects(root, manifest_name, exclude):
        outcome = run_project(project, command, stream=stream)
        result.tested.append(outcome)
        if not outcome.passed:
            logger.error("tests failed in %s (status %d)", project.root, outcome.returncode)
            result.failed = outcome
            return result
    logger.info("all %d project(s) passed", len(result.tested))
    return result


def write_record(result: SweepResult, output: Path, root: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=["project", "status", "returncode"])
        writer.writeheader()
        for outcome in result.tested:
            writer.writerow({
                "project": outcome.project.root.relative_to(root).as_posix(),
                "status": "passed" if outcome.passed else "failed",
                "returncode": outcome.returncode,
            })
