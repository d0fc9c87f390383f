# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Exception types raised by crate_sweep."""

from __future__ import annotations

from typing import Optional


class SweepError(Exception):
    """Base class for every failure the CLI reports."""


class ConfigError(SweepError, ValueError):
    """A setting, env file or workflow file could not be interpreted."""


class SetupError(SweepError):
    """Checkout or toolchain preparation failed; nothing was tested."""

    def __init__(self, message: str, returncode: Optional[int] = None) -> None:
        super().__init__(message)
        self.returncode = returncode
