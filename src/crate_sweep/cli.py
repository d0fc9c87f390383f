# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Test every Cargo project in a tree, stopping at the first failure."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from crate_sweep import __version__
from crate_sweep.config import SweepConfig, ToolchainSpec, load_settings, parse_command, parse_version
from crate_sweep.errors import ConfigError, SetupError
from crate_sweep.logging_config import setup_logging
from crate_sweep.sweep import discover_projects, sweep, write_record
from crate_sweep.toolchain import prepare
from crate_sweep.triggers import DEFAULT_TRIGGER
from crate_sweep.workflow import load_workflow

logger = logging.getLogger(__name__)


def add_sweep_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--root", type=Path, help="Tree to sweep (default: SWEEP_ROOT or .)")
    parser.add_argument("--manifest", help="Manifest file name marking a project (default: Cargo.toml)")
    parser.add_argument("--command", help="Test command run in each project (default: 'cargo test')")
    parser.add_argument("--exclude", action="append", default=[], metavar="GLOB",
                        help="Skip project directories matching GLOB; repeatable")
    parser.add_argument("--fail-exit-code", type=int,
                        help="Exit with this status on failure instead of the project's own")
    parser.add_argument("--output", type=Path, help="Write a CSV record of tested projects")


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="crate-sweep", description=__doc__)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--env", type=Path, help="Env-style settings file (default: SWEEP_ENV_FILE or .env)")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--log-format", choices=["dev", "json"], help="Log format (default: LOG_FORMAT or dev)")
    sub = parser.add_subparsers(dest="action", required=True)

    run = sub.add_parser("run", help="Prepare the toolchain, then sweep")
    add_sweep_arguments(run)
    run.add_argument("--workflow", type=Path, help="Take toolchain settings from a workflow YAML file")
    run.add_argument("--revision", help="Revision to check out before testing")
    run.add_argument("--toolchain", help="Toolchain channel (default: stable)")
    run.add_argument("--profile", help="rustup profile (default: minimal)")
    run.add_argument("--no-override", action="store_true", help="Do not pin the toolchain for the tree")
    run.add_argument("--min-version", help="Fail unless cargo is at least this version")
    run.add_argument("--skip-checkout", action="store_true")
    run.add_argument("--skip-toolchain", action="store_true")

    sweep_parser = sub.add_parser("sweep", help="Test every project without preparing the toolchain")
    add_sweep_arguments(sweep_parser)

    discover = sub.add_parser("discover", help="List project directories")
    discover.add_argument("--root", type=Path)
    discover.add_argument("--manifest")
    discover.add_argument("--exclude", action="append", default=[], metavar="GLOB")

    should_run = sub.add_parser("should-run", help="Exit 0 when an event passes the trigger filter")
    should_run.add_argument("--event", required=True, help="pull_request or push")
    should_run.add_argument("--branch", required=True, help="Target branch (pull_request) or pushed ref")
    should_run.add_argument("--workflow", type=Path, help="Read filters from a workflow YAML file")
    should_run.add_argument("files", nargs="*", help="Changed files; '-' reads them from stdin")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, settings: Dict[str, str]) -> SweepConfig:
    config = SweepConfig.from_env(settings)
    workflow = getattr(args, "workflow", None)
    if workflow is not None:
        config = config.with_toolchain(load_workflow(workflow).toolchain)

    if args.root is not None:
        config.root = args.root
    if args.manifest:
        config.manifest = args.manifest
    if args.exclude:
        config.exclude = tuple(args.exclude)
    if getattr(args, "command", None):
        config.command = parse_command(args.command, "--command")
    fail_exit_code = getattr(args, "fail_exit_code", None)
    if fail_exit_code is not None:
        if not 1 <= fail_exit_code <= 255:
            raise ConfigError(f"--fail-exit-code must be between 1 and 255, got {fail_exit_code}")
        config.fail_exit_code = fail_exit_code
    if getattr(args, "output", None) is not None:
        config.output = args.output

    if args.action == "run":
        spec = config.toolchain
        config.toolchain = ToolchainSpec(
            toolchain=args.toolchain or spec.toolchain,
            profile=args.profile or spec.profile,
            override=spec.override and not args.no_override,
            components=spec.components,
        )
        if args.revision:
            config.revision = args.revision
        if args.min_version:
            config.min_version = parse_version(args.min_version, "--min-version")
    return config


def run_sweep(config: SweepConfig) -> int:
    result = sweep(
        config.root,
        config.command,
        manifest_name=config.manifest,
        exclude=config.exclude,
        fail_exit_code=config.fail_exit_code,
    )
    if config.output is not None:
        write_record(result, config.output, config.root)
        logger.info("wrote sweep record to %s", config.output)
    return result.exit_code


def read_changed_files(files: List[str]) -> List[str]:
    if files == ["-"]:
        return [line.strip() for line in sys.stdin if line.strip()]
    return files


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    try:
        settings = load_settings(args.env)
    except ConfigError as exc:
        print(f"[crate-sweep] {exc}", file=sys.stderr)
        return 2
    setup_logging(args.log_format or settings.get("LOG_FORMAT"), args.log_level or settings.get("LOG_LEVEL"))

    try:
        if args.action == "should-run":
            trigger = load_workflow(args.workflow).trigger if args.workflow else DEFAULT_TRIGGER
            triggered = trigger.matches(args.event, args.branch, read_changed_files(args.files))
            print("triggered" if triggered else "skipped")
            return 0 if triggered else 1

        config = build_config(args, settings)
        if args.action == "discover":
            for project in discover_projects(config.root, config.manifest, config.exclude):
                print(project.root)
            return 0
        if args.action == "run":
            prepare(config, skip_checkout=args.skip_checkout, skip_toolchain=args.skip_toolchain)
        return run_sweep(config)
    except ConfigError as exc:
        print(f"[crate-sweep] {exc}", file=sys.stderr)
        return 2
    except SetupError as exc:
        print(f"[crate-sweep] setup failed: {exc}", file=sys.stderr)
        if exc.returncode is not None and 0 < exc.returncode < 256:
            return exc.returncode
        return 1


if __name__ == "__main__":  # pragma: no cover - exercised via __main__
    sys.exit(main())
