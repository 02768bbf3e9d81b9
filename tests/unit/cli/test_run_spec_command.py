"""Unit tests for run-spec CLI execution."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from core.errors import ChronicleRunSpecError
from core.types import RebuildOptions, RebuildSummary
from history.client import ChronicleClient


def test_cli_run_spec_executes_rebuild_steps(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Run-spec command should route each step to client rebuilds."""
    captured: list[tuple[int, tuple[str, ...]]] = []

    def _fake_rebuild(self: ChronicleClient, options: RebuildOptions) -> RebuildSummary:
        captured.append((self.config.worker_count, options.domains))
        return RebuildSummary(
            history_path=f"{options.output_dir}/history.parquet",
            stats_path=f"{options.output_dir}/stats.json",
            errors_path=None,
            state_count=0,
            unmatched_event_count=0,
            parsing_error_count=0,
        )

    monkeypatch.setattr(ChronicleClient, "rebuild", _fake_rebuild)
    spec_path = tmp_path / "run.yaml"
    spec_path.write_text(
        "version: 1\n"
        "defaults:\n"
        "  workers: 3\n"
        "steps:\n"
        "  - command: rebuild\n"
        "    events: events.jsonl\n"
        "    states: states.jsonl\n"
        "    output_dir: first\n"
        "    domains: [enwiki]\n"
        "  - command: rebuild\n"
        "    events: events.jsonl\n"
        "    states: states.jsonl\n"
        "    output_dir: second\n",
        encoding="utf-8",
    )

    exit_code = main(["run-spec", str(spec_path)])
    output = capsys.readouterr().out.strip().splitlines()

    assert exit_code == 0
    assert captured == [(3, ("enwiki",)), (3, ())]
    assert [line for line in output if line.startswith("history_path=")] == [
        "history_path=first/history.parquet",
        "history_path=second/history.parquet",
    ]


def test_cli_run_spec_missing_output_dir_raises_error(tmp_path: Path) -> None:
    """Run-spec should fail when a rebuild step has no output directory."""
    spec_path = tmp_path / "run.yaml"
    spec_path.write_text(
        "version: 1\nsteps:\n  - command: rebuild\n    events: e.jsonl\n    states: s.jsonl\n",
        encoding="utf-8",
    )

    with pytest.raises(ChronicleRunSpecError):
        main(["run-spec", str(spec_path)])
