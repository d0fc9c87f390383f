# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Read the trigger filter and toolchain step out of a workflow YAML file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from crate_sweep.config import ToolchainSpec, parse_bool
from crate_sweep.errors import ConfigError
from crate_sweep.triggers import TriggerFilter

logger = logging.getLogger(__name__)

TOOLCHAIN_ACTIONS = ("actions-rs/toolchain", "dtolnay/rust-toolchain")


@dataclass(frozen=True)
class WorkflowSpec:
    name: str
    trigger: TriggerFilter
    toolchain: ToolchainSpec = field(default_factory=ToolchainSpec)


def _string_list(value: Any, context: str) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{context}' must be a list of strings, got {value!r}")
    return tuple(value)


def _event_table(data: Dict[Any, Any]) -> Dict[str, Any]:
    # YAML 1.1 reads a bare ``on`` key as the boolean True.
    raw = data["on"] if "on" in data else data.get(True)
    if raw is None:
        raise ConfigError("workflow has no 'on' section")
    if isinstance(raw, str):
        return {raw: None}
    if isinstance(raw, list):
        return {str(event): None for event in raw}
    if isinstance(raw, dict):
        return raw
    raise ConfigError(f"'on' must be a string, list or mapping, got {raw!r}")


def _event_config(events: Dict[str, Any], event: str) -> Dict[str, Any]:
    cfg = events.get(event) or {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"'on.{event}' must be a mapping, got {cfg!r}")
    return cfg


def parse_trigger(data: Dict[Any, Any]) -> TriggerFilter:
    events = _event_table(data)

    pull_request_branches = None
    if "pull_request" in events:
        cfg = _event_config(events, "pull_request")
        pull_request_branches = _string_list(cfg.get("branches"), "on.pull_request.branches") or ("**",)

    push_branches = None
    push_paths = None
    if "push" in events:
        cfg = _event_config(events, "push")
        push_branches = _string_list(cfg.get("branches"), "on.push.branches") or ("**",)
        push_paths = _string_list(cfg.get("paths"), "on.push.paths")

    return TriggerFilter(
        pull_request_branches=pull_request_branches,
        push_branches=push_branches,
        push_paths=push_paths,
    )


def _toolchain_from_step(step: Dict[str, Any]) -> ToolchainSpec:
    uses = step["uses"]
    options = step.get("with") or {}
    if not isinstance(options, dict):
        raise ConfigError(f"'with' of step {uses!r} must be a mapping")

    default_channel = "stable"
    if uses.startswith("dtolnay/rust-toolchain@"):
        # this action selects the channel through its ref
        ref = uses.split("@", 1)[1]
        if ref not in ("master", "main", "v1"):
            default_channel = ref

    channel = options.get("toolchain", default_channel)
    if not isinstance(channel, str):
        raise ConfigError(f"toolchain {channel!r} must be quoted in the workflow file")

    override = options.get("override", True)
    if not isinstance(override, bool):
        override = parse_bool(str(override), "with.override")

    components = options.get("components")
    if isinstance(components, str):
        components = tuple(part.strip() for part in components.split(",") if part.strip())
    else:
        components = _string_list(components, "with.components") or ()

    return ToolchainSpec(
        toolchain=channel,
        profile=str(options.get("profile", "minimal")),
        override=override,
        components=components,
    )


def parse_toolchain(data: Dict[Any, Any]) -> ToolchainSpec:
    jobs = data.get("jobs") or {}
    if not isinstance(jobs, dict):
        raise ConfigError("'jobs' must be a mapping")
    for job_name, job in jobs.items():
        if job is None:
            continue
        if not isinstance(job, dict):
            raise ConfigError(f"'jobs.{job_name}' must be a mapping, got {job!r}")
        steps = job.get("steps") or []
        if not isinstance(steps, list):
            raise ConfigError(f"'jobs.{job_name}.steps' must be a list, got {steps!r}")
        for step in steps:
            uses = step.get("uses") if isinstance(step, dict) else None
            if isinstance(uses, str) and uses.startswith(TOOLCHAIN_ACTIONS):
                logger.debug("toolchain taken from step %r in job %r", uses, job_name)
                return _toolchain_from_step(step)
    return ToolchainSpec()


def load_workflow(path: Path) -> WorkflowSpec:
    try:
        data = yaml.safe_load(path.read_text())
    except OSError as exc:
        raise ConfigError(f"cannot read workflow {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"workflow {path} must be a mapping at the top level")
    return WorkflowSpec(
        name=str(data.get("name") or path.stem),
        trigger=parse_trigger(data),
        toolchain=parse_toolchain(data),
    )
