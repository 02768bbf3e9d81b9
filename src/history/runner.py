"""History rebuild orchestration for file-based runs.

This module coordinates source loading, parsing-error separation,
reconstruction, and output writes for one rebuild request.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from core.config import ChronicleConfig
from core.constants import (
    ERRORS_FILE_NAME,
    HISTORY_FILE_NAME,
    METRIC_INITIAL_STATES,
    METRIC_WRITTEN_ROWS,
    STATS_FILE_NAME,
)
from core.logging_config import get_logger
from core.types import EntityEvent, EntityState, RebuildOptions, RebuildSummary
from history.builder import HistoryBuilder
from history.statistics import StatsAccumulator
from ingest.event_records import read_event_records, split_parsing_errors
from ingest.state_records import read_state_records
from store.history_writer import write_error_records, write_history_parquet, write_stats_json

_LOGGER = get_logger(__name__)


class HistoryRunner:
    """Runner for one history rebuild request."""

    def __init__(self, options: RebuildOptions, config: ChronicleConfig) -> None:
        self._options = options
        self._config = config
        self._output_dir = Path(options.output_dir).expanduser()
        self._stats = StatsAccumulator()

    def run(self) -> RebuildSummary:
        """Execute the rebuild and return written artifact paths."""
        events = self._filter_events(read_event_records(self._options.events_uri, self._config))
        states = self._filter_domains(read_state_records(self._options.states_uri, self._config))
        parsed_events, parsing_errors = split_parsing_errors(events, self._stats)
        for state in states:
            self._stats.add_domain(state.domain, METRIC_INITIAL_STATES)
        builder = HistoryBuilder(self._config, stats_sink=self._stats)
        result = builder.run(parsed_events, states)
        history_path = self._output_dir / HISTORY_FILE_NAME
        write_history_parquet(history_path, result.states)
        for state in result.states:
            self._stats.add_domain(state.domain, METRIC_WRITTEN_ROWS)
        errors_path = self._write_errors(parsing_errors, list(result.unmatched_events))
        stats_path = self._output_dir / STATS_FILE_NAME
        write_stats_json(stats_path, self._stats.as_dict())
        summary = RebuildSummary(
            history_path=str(history_path),
            stats_path=str(stats_path),
            errors_path=str(errors_path) if errors_path else None,
            state_count=len(result.states),
            unmatched_event_count=len(result.unmatched_events),
            parsing_error_count=len(parsing_errors),
        )
        _log_rebuild_completion(self._options, len(events), len(states), summary)
        return summary

    def _filter_events(self, events: Sequence[EntityEvent]) -> list[EntityEvent]:
        """Apply the domain constraint, keeping errors whose domain is unreadable."""
        if not self._options.domains:
            return list(events)
        allowed = set(self._options.domains)
        return [
            event
            for event in events
            if event.domain in allowed or (event.parsing_errors and not event.domain)
        ]

    def _filter_domains(self, states: Sequence[EntityState]) -> list[EntityState]:
        if not self._options.domains:
            return list(states)
        allowed = set(self._options.domains)
        return [state for state in states if state.domain in allowed]

    def _write_errors(
        self,
        parsing_errors: list[EntityEvent],
        unmatched_events: list[EntityEvent],
    ) -> Path | None:
        if not self._options.write_errors:
            return None
        errors_path = self._output_dir / ERRORS_FILE_NAME
        write_error_records(errors_path, parsing_errors, unmatched_events)
        return errors_path


def rebuild_history(options: RebuildOptions, config: ChronicleConfig) -> RebuildSummary:
    """Rebuild entity history from event and state sources.

    Args:
        options: Rebuild request options.
        config: Runtime configuration.

    Returns:
        Written artifact paths and counts.

    Raises:
        ChronicleIngestError: If sources cannot be read or states are malformed.
        ChroniclePartitionError: If partitioning breaks identity closure.
        ChronicleStoreError: If outputs cannot be written.
    """
    runner = HistoryRunner(options, config)
    return runner.run()


def _log_rebuild_completion(
    options: RebuildOptions,
    event_count: int,
    state_count: int,
    summary: RebuildSummary,
) -> None:
    """Log rebuild completion with contextual metadata."""
    _LOGGER.info(
        "history_rebuild_completed",
        events_uri=options.events_uri,
        states_uri=options.states_uri,
        domains=list(options.domains),
        input_event_count=event_count,
        input_state_count=state_count,
        output_state_count=summary.state_count,
        unmatched_event_count=summary.unmatched_event_count,
        parsing_error_count=summary.parsing_error_count,
        history_path=summary.history_path,
    )
