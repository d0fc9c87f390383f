# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Prepare the checkout and the pinned Rust toolchain before a sweep.

Every step is fatal: a failed checkout or install raises :class:`SetupError`
and no project is tested. Nothing is retried.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional

from packaging.version import Version

from crate_sweep.config import SweepConfig, ToolchainSpec
from crate_sweep.errors import SetupError

logger = logging.getLogger(__name__)

CARGO_VERSION_RE = re.compile(r"^cargo\s+v?(\d+\.\d+\.\d+)")


def run_step(cmd: List[str], cwd: Optional[Path] = None) -> str:
    logger.debug("running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError:
        raise SetupError(f"{cmd[0]}: command not found", returncode=127) from None
    except PermissionError:
        raise SetupError(f"{cmd[0]}: permission denied", returncode=126) from None
    if result.returncode != 0:
        detail = result.stderr.strip() or result.stdout.strip()
        message = f"{' '.join(cmd)} exited with status {result.returncode}"
        if detail:
            message = f"{message}: {detail}"
        raise SetupError(message, returncode=result.returncode)
    return result.stdout.strip()


def checkout(root: Path, revision: Optional[str] = None, git: str = "git") -> None:
    if not root.is_dir():
        raise SetupError(f"checkout root {root} is not a directory", returncode=1)
    if revision is None:
        logger.info("using existing checkout at %s", root)
        return
    logger.info("checking out %s in %s", revision, root)
    run_step([git, "checkout", "--quiet", revision], cwd=root)


def install_toolchain(spec: ToolchainSpec, root: Path, rustup: str = "rustup") -> None:
    """Install ``spec.toolchain`` and, when asked, pin it for ``root``."""
    cmd = [rustup, "toolchain", "install", spec.toolchain, "--profile", spec.profile]
    for component in spec.components:
        cmd += ["--component", component]
    logger.info("installing toolchain %s (profile %s)", spec.toolchain, spec.profile)
    run_step(cmd)
    if spec.override:
        run_step([rustup, "override", "set", spec.toolchain], cwd=root)


def parse_cargo_version(output: str) -> Version:
    match = CARGO_VERSION_RE.match(output.strip())
    if not match:
        raise SetupError(f"unrecognised cargo version output: {output!r}", returncode=1)
    return Version(match.group(1))


def toolchain_version(cargo: str = "cargo", cwd: Optional[Path] = None) -> Version:
    return parse_cargo_version(run_step([cargo, "--version"], cwd=cwd))


def check_minimum_version(version: Version, minimum: Optional[Version]) -> None:
    if minimum is not None and version < minimum:
        raise SetupError(f"cargo {version} is older than the required {minimum}", returncode=1)


def prepare(config: SweepConfig, skip_checkout: bool = False, skip_toolchain: bool = False) -> None:
    if not skip_checkout:
        checkout(config.root, config.revision, git=config.git)
    if not skip_toolchain:
        install_toolchain(config.toolchain, config.root, rustup=config.rustup)
    if config.min_version is not None:
        version = toolchain_version(config.cargo, cwd=config.root)
        logger.info("cargo %s available", version)
        check_minimum_version(version, config.min_version)
