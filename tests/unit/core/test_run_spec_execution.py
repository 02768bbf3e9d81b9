"""Unit tests for run-spec step execution."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from core.errors import ChronicleRunSpecError
from core.run_spec import RunSpec, RunSpecDefaults, RunSpecStep
from core.run_spec_execution import execute_run_spec
from core.types import RebuildOptions, RebuildSummary


class _FakeClient:
    def __init__(self) -> None:
        self.overrides: dict[str, object] = {}
        self.rebuilds: list[RebuildOptions] = []

    def with_overrides(
        self,
        worker_count: int | None = None,
        present_timestamp: datetime | None = None,
    ) -> "_FakeClient":
        self.overrides = {"worker_count": worker_count, "present_timestamp": present_timestamp}
        return self

    def rebuild(self, options: RebuildOptions) -> RebuildSummary:
        self.rebuilds.append(options)
        output_dir = Path(options.output_dir)
        return RebuildSummary(
            history_path=str(output_dir / "history.parquet"),
            stats_path=str(output_dir / "stats.json"),
            errors_path=None,
            state_count=2,
            unmatched_event_count=1,
            parsing_error_count=0,
        )


def _spec(args: dict[str, object], defaults: RunSpecDefaults | None = None) -> RunSpec:
    return RunSpec(
        version=1,
        defaults=defaults or RunSpecDefaults(),
        steps=(RunSpecStep(command="rebuild", args=args),),
    )


def test_execute_run_spec_forwards_rebuild_options() -> None:
    """A rebuild step should become rebuild options on the client."""
    client = _FakeClient()
    spec = _spec(
        {
            "events": "events.jsonl",
            "states": "states.jsonl",
            "output_dir": "out",
            "domains": ["enwiki", "frwiki"],
            "write_errors": True,
        },
        RunSpecDefaults(worker_count=3, present_timestamp="2024-06-01T00:00:00Z"),
    )

    output_lines = execute_run_spec(client, spec)

    assert client.rebuilds == [
        RebuildOptions(
            events_uri="events.jsonl",
            states_uri="states.jsonl",
            output_dir="out",
            domains=("enwiki", "frwiki"),
            write_errors=True,
        )
    ]
    assert client.overrides == {
        "worker_count": 3,
        "present_timestamp": datetime(2024, 6, 1, tzinfo=timezone.utc),
    }
    assert output_lines[0] == f"history_path={Path('out') / 'history.parquet'}"
    assert "errors_path=-" in output_lines


def test_execute_run_spec_requires_events_field() -> None:
    """A rebuild step without events should fail validation."""
    with pytest.raises(ChronicleRunSpecError, match="events"):
        execute_run_spec(_FakeClient(), _spec({"states": "s.jsonl", "output_dir": "out"}))


def test_execute_run_spec_rejects_unknown_step_field() -> None:
    """Unknown rebuild fields should be rejected."""
    args = {"events": "e", "states": "s", "output_dir": "out", "dataset": "demo"}

    with pytest.raises(ChronicleRunSpecError, match="dataset"):
        execute_run_spec(_FakeClient(), _spec(args))


def test_execute_run_spec_rejects_bad_present_timestamp() -> None:
    """An unparsable default processing time should be a run-spec error."""
    spec = _spec(
        {"events": "e", "states": "s", "output_dir": "out"},
        RunSpecDefaults(present_timestamp="whenever"),
    )

    with pytest.raises(ChronicleRunSpecError):
        execute_run_spec(_FakeClient(), spec)
