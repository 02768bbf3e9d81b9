"""Chronicle CLI entry points.
This module exposes history rebuild and run-spec commands.
It maps argparse commands onto client calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Any, Sequence

from core.config import ChronicleConfig, parse_present_timestamp
from core.errors import ChronicleConfigError
from core.run_spec_execution import execute_run_spec_file, format_rebuild_summary
from core.types import RebuildOptions
from history.client import ChronicleClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="chronicle", description="Chronicle history CLI")
    parser.add_argument("--workers", type=int, help="Override CHRONICLE_WORKERS for this command")
    parser.add_argument(
        "--present-timestamp",
        help="Override CHRONICLE_PRESENT_TIMESTAMP (YYYYMMDDHHMMSS or ISO 8601)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_rebuild_command(subparsers)
    _add_run_spec_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Chronicle CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    client = _build_client(args.workers, args.present_timestamp)
    if args.command == "rebuild":
        return _run_rebuild_command(client, args)
    if args.command == "run-spec":
        return _run_run_spec_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(workers: int | None, present_timestamp: str | None) -> ChronicleClient:
    """Build client with optional config overrides.

    Args:
        workers: Optional worker count override.
        present_timestamp: Optional raw processing-time override.

    Returns:
        Configured client.

    Raises:
        ChronicleConfigError: If an override value is invalid.
    """
    config = ChronicleConfig.from_env()
    if workers is not None:
        if workers < 1:
            raise ChronicleConfigError(
                f"Invalid --workers value: expected at least 1, got {workers}."
            )
        config = replace(config, worker_count=workers)
    if present_timestamp is not None:
        config = replace(config, present_timestamp=parse_present_timestamp(present_timestamp))
    return ChronicleClient(config)


def _run_rebuild_command(client: ChronicleClient, args: argparse.Namespace) -> int:
    """Handle rebuild command.

    Args:
        client: Chronicle client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = RebuildOptions(
        events_uri=args.events,
        states_uri=args.states,
        output_dir=args.output_dir,
        domains=tuple(args.domain or ()),
        write_errors=args.write_errors,
    )
    summary = client.rebuild(options)
    for line in format_rebuild_summary(summary):
        print(line)
    return 0


def _add_rebuild_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("rebuild", help="Rebuild entity history from events and states")
    parser.add_argument("events", help="Event file, directory, or s3://bucket/prefix")
    parser.add_argument("states", help="Current state file, directory, or s3://bucket/prefix")
    parser.add_argument("--output-dir", required=True, help="Local output directory")
    parser.add_argument(
        "--domain",
        action="append",
        help="Restrict the rebuild to one domain; repeat for several",
    )
    parser.add_argument(
        "--write-errors",
        action="store_true",
        help="Write parsing errors and unmatched events to errors.jsonl",
    )


def _run_run_spec_command(client: ChronicleClient, args: argparse.Namespace) -> int:
    """Handle run-spec command by executing every declared step."""
    for line in execute_run_spec_file(client, args.spec_file):
        print(line)
    return 0


def _add_run_spec_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("run-spec", help="Run a declarative YAML rebuild spec")
    parser.add_argument("spec_file", help="Path to YAML run-spec file")
