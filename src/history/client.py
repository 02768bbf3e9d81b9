"""Public client surface for Chronicle.

This module exposes config-bound rebuild and in-memory reconstruction
operations used by the CLI, run specs, and library callers.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Sequence

from core.config import ChronicleConfig
from core.types import (
    EntityEvent,
    EntityState,
    RebuildOptions,
    RebuildSummary,
    ReconstructionResult,
)
from history.builder import HistoryBuilder
from history.runner import rebuild_history
from history.statistics import StatsSink


class ChronicleClient:
    """Primary entry point for history reconstruction."""

    def __init__(self, config: ChronicleConfig) -> None:
        self._config = config

    @property
    def config(self) -> ChronicleConfig:
        return self._config

    def with_overrides(
        self,
        worker_count: int | None = None,
        present_timestamp: datetime | None = None,
    ) -> "ChronicleClient":
        """Return a client whose config overrides the given fields."""
        config = self._config
        if worker_count is not None:
            config = replace(config, worker_count=worker_count)
        if present_timestamp is not None:
            config = replace(config, present_timestamp=present_timestamp)
        return ChronicleClient(config)

    def rebuild(self, options: RebuildOptions) -> RebuildSummary:
        """Rebuild history from sources and write outputs."""
        return rebuild_history(options, self._config)

    def reconstruct(
        self,
        events: Sequence[EntityEvent],
        states: Sequence[EntityState],
        stats_sink: StatsSink | None = None,
    ) -> ReconstructionResult:
        """Reconstruct history from in-memory events and states."""
        return HistoryBuilder(self._config, stats_sink=stats_sink).run(events, states)
