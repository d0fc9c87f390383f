# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Runtime settings assembled from defaults, an env file and the environment."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from packaging.version import InvalidVersion, Version

from crate_sweep.errors import ConfigError

DEFAULT_ENV_PATH = Path(".env")
DEFAULT_MANIFEST = "Cargo.toml"
DEFAULT_TEST_COMMAND = "cargo test"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class ToolchainSpec:
    toolchain: str = "stable"
    profile: str = "minimal"
    override: bool = True
    components: Tuple[str, ...] = ()


@dataclass
class SweepConfig:
    root: Path = Path(".")
    manifest: str = DEFAULT_MANIFEST
    command: List[str] = field(default_factory=lambda: shlex.split(DEFAULT_TEST_COMMAND))
    exclude: Tuple[str, ...] = ()
    fail_exit_code: Optional[int] = None
    output: Optional[Path] = None
    toolchain: ToolchainSpec = field(default_factory=ToolchainSpec)
    min_version: Optional[Version] = None
    revision: Optional[str] = None
    rustup: str = "rustup"
    cargo: str = "cargo"
    git: str = "git"

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "SweepConfig":
        """Build a config from ``SWEEP_*`` / ``RUST_*`` keys, ignoring the rest."""
        toolchain = ToolchainSpec(
            toolchain=env.get("RUST_TOOLCHAIN", "stable"),
            profile=env.get("RUST_PROFILE", "minimal"),
            override=parse_bool(env.get("RUST_OVERRIDE", "true"), "RUST_OVERRIDE"),
            components=split_list(env.get("RUST_COMPONENTS", "")),
        )
        command = env.get("SWEEP_TEST_COMMAND", DEFAULT_TEST_COMMAND)
        output = env.get("SWEEP_OUTPUT")
        return cls(
            root=Path(env.get("SWEEP_ROOT", ".")),
            manifest=env.get("SWEEP_MANIFEST", DEFAULT_MANIFEST),
            command=parse_command(command, "SWEEP_TEST_COMMAND"),
            exclude=split_list(env.get("SWEEP_EXCLUDE", "")),
            fail_exit_code=parse_exit_code(env.get("SWEEP_FAIL_EXIT_CODE"), "SWEEP_FAIL_EXIT_CODE"),
            output=Path(output) if output else None,
            toolchain=toolchain,
            min_version=parse_version(env.get("RUST_MIN_VERSION"), "RUST_MIN_VERSION"),
            revision=env.get("SWEEP_REVISION") or None,
            rustup=env.get("RUSTUP_BIN", "rustup"),
            cargo=env.get("CARGO_BIN", "cargo"),
            git=env.get("GIT_BIN", "git"),
        )

    def with_toolchain(self, toolchain: ToolchainSpec) -> "SweepConfig":
        return replace(self, toolchain=toolchain)


def load_env(path: Path) -> Dict[str, str]:
    env: Dict[str, str] = {}
    if not path.exists():
        return env
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        env[key.strip()] = value
    return env


def load_settings(env_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Merge the env file under the process environment.

    Process environment wins over the file, matching how shells treat
    ``.env`` files that were not sourced. Only an explicitly named file has
    to exist; the implicit one is optional.
    """
    if environ is None:
        environ = os.environ
    if env_path is None:
        env_path = Path(environ.get("SWEEP_ENV_FILE", str(DEFAULT_ENV_PATH)))
    elif not env_path.is_file():
        raise ConfigError(f"env file {env_path} does not exist")
    merged = load_env(env_path)
    merged.update(environ)
    return merged


def load_config(env_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> SweepConfig:
    return SweepConfig.from_env(load_settings(env_path, environ))


def parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def parse_exit_code(value: Optional[str], name: str) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    try:
        code = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if not 1 <= code <= 255:
        raise ConfigError(f"{name} must be between 1 and 255, got {code}")
    return code


def parse_version(value: Optional[str], name: str) -> Optional[Version]:
    if value is None or value.strip() == "":
        return None
    try:
        return Version(value.strip().lstrip("vV"))
    except InvalidVersion:
        raise ConfigError(f"{name} is not a valid version: {value!r}") from None


def parse_command(value: str, name: str) -> List[str]:
    try:
        argv = shlex.split(value)
    except ValueError as exc:
        raise ConfigError(f"{name} could not be parsed: {exc}") from None
    if not argv:
        raise ConfigError(f"{name} must not be empty")
    return argv


def split_list(value: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())
