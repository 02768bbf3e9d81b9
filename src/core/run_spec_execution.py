"""Shared run-spec execution engine for CLI and library workflows.

This module maps validated run-spec steps to client operations so
different entry points execute one declarative rebuild path.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from core.config import parse_present_timestamp
from core.errors import ChronicleConfigError, ChronicleRunSpecError
from core.run_spec import RunSpec, RunSpecStep, load_run_spec
from core.run_spec_fields import optional_bool, required_string, string_tuple
from core.types import RebuildOptions, RebuildSummary

_REBUILD_FIELDS = {"events", "states", "output_dir", "domains", "write_errors"}


class RunSpecClient(Protocol):
    """Client API contract required by run-spec execution."""

    def with_overrides(
        self,
        worker_count: int | None = None,
        present_timestamp: datetime | None = None,
    ) -> "RunSpecClient": ...

    def rebuild(self, options: RebuildOptions) -> RebuildSummary: ...


def execute_run_spec_file(client: RunSpecClient, spec_file: str) -> tuple[str, ...]:
    """Load and execute a run-spec file, returning printable output lines."""
    spec = load_run_spec(spec_file)
    return execute_run_spec(client, spec)


def execute_run_spec(client: RunSpecClient, spec: RunSpec) -> tuple[str, ...]:
    """Execute a parsed run-spec object and return output lines."""
    try:
        present_timestamp = parse_present_timestamp(spec.defaults.present_timestamp)
    except ChronicleConfigError as error:
        raise ChronicleRunSpecError(f"Invalid run spec defaults: {error}") from error
    execution_client = client.with_overrides(
        worker_count=spec.defaults.worker_count,
        present_timestamp=present_timestamp,
    )
    output_lines: list[str] = []
    for step in spec.steps:
        output_lines.extend(_execute_step(execution_client, step))
    return tuple(output_lines)


def _execute_step(client: RunSpecClient, step: RunSpecStep) -> tuple[str, ...]:
    if step.command == "rebuild":
        return _execute_rebuild_step(client, step)
    raise ChronicleRunSpecError(f"Unsupported run-spec command '{step.command}'.")


def _execute_rebuild_step(client: RunSpecClient, step: RunSpecStep) -> tuple[str, ...]:
    unknown_fields = sorted(set(step.args) - _REBUILD_FIELDS)
    if unknown_fields:
        raise ChronicleRunSpecError(
            f"Run-spec rebuild step has unknown fields: {', '.join(unknown_fields)}."
        )
    options = RebuildOptions(
        events_uri=required_string(step.args, "events"),
        states_uri=required_string(step.args, "states"),
        output_dir=required_string(step.args, "output_dir"),
        domains=string_tuple(step.args, "domains"),
        write_errors=optional_bool(step.args, "write_errors", False),
    )
    summary = client.rebuild(options)
    return format_rebuild_summary(summary)


def format_rebuild_summary(summary: RebuildSummary) -> tuple[str, ...]:
    """Render a rebuild summary as ``key=value`` output lines."""
    return (
        f"history_path={summary.history_path}",
        f"stats_path={summary.stats_path}",
        f"errors_path={summary.errors_path or '-'}",
        f"state_count={summary.state_count}",
        f"unmatched_event_count={summary.unmatched_event_count}",
        f"parsing_error_count={summary.parsing_error_count}",
    )
