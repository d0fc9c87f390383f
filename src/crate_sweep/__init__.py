# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Discover every Cargo project in a tree and test each one, fail-fast.

The package mirrors a small CI job: prepare a pinned Rust toolchain, then
walk the checkout for ``Cargo.toml`` files and run ``cargo test`` in each
containing directory until one of them fails.
"""

from crate_sweep.errors import ConfigError, SetupError, SweepError
from crate_sweep.sweep import Project, ProjectResult, SweepResult, discover_projects, sweep

__version__ = "0.1.0"

__all__: list[str] = [
    "ConfigError",
    "Project",
    "ProjectResult",
    "SetupError",
    "SweepError",
    "SweepResult",
    "discover_projects",
    "sweep",
]
