"""Unit tests for partition orchestration."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

import pytest

import history.builder
from core.config import ChronicleConfig
from core.errors import ChroniclePartitionError
from core.types import EntityEvent, EntityState, EventType, IdentityKey
from history.builder import HistoryBuilder
from history.statistics import StatsAccumulator
from partition.subgraph_partitioner import Partition

_PRESENT = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _config(worker_count: int = 1) -> ChronicleConfig:
    return ChronicleConfig(
        worker_count=worker_count,
        present_timestamp=_PRESENT,
        bot_name_cache_size=16,
        s3_region=None,
        s3_profile=None,
    )


def _key(name: str, domain: str = "wiki") -> IdentityKey:
    return IdentityKey(domain=domain, name=name)


def _state(name: str, entity_id: int, domain: str = "wiki") -> EntityState:
    return EntityState(
        entity_id=entity_id,
        historical_key=_key(name, domain),
        current_key=_key(name, domain),
        registration_timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def _event(day: int, new_name: str, old_name: str | None = None) -> EntityEvent:
    event_type = EventType.RENAME if old_name else EventType.ALTER_GROUPS
    return EntityEvent(
        timestamp=datetime(2024, 1, day, tzinfo=timezone.utc),
        event_type=event_type,
        old_key=_key(old_name or new_name),
        new_key=_key(new_name),
    )


def _inputs() -> tuple[list[EntityEvent], list[EntityState]]:
    events = [
        _event(10, "Bravo", "Alpha"),
        _event(5, "Bravo"),
        _event(7, "Delta"),
        _event(8, "Nobody"),
    ]
    states = [_state("Bravo", 1), _state("Delta", 2), _state("Echo", 3, domain="other")]
    return events, states


def _timeline_key(state: EntityState) -> tuple[str, int, datetime | None]:
    return (state.domain, state.entity_id, state.start_timestamp)


def test_run_conserves_events_across_partitions() -> None:
    """Matched plus unmatched events should equal the input events."""
    events, states = _inputs()
    result = HistoryBuilder(_config()).run(events, states)
    matched = sum(
        count for key, count in result.stats.items() if key.endswith("eventsMatching.OK")
    )

    assert matched + len(result.unmatched_events) == len(events)
    assert [event.new_key.name for event in result.unmatched_events] == ["Nobody"]


def test_run_keeps_each_entity_timeline_contiguous() -> None:
    """Every entity's states should be adjacent and ascending by start."""
    events, states = _inputs()
    result = HistoryBuilder(_config()).run(events, states)
    entity_order = [(state.domain, state.entity_id) for state in result.states]

    assert entity_order == [("wiki", 1)] * 3 + [("wiki", 2)] * 2 + [("other", 3)]
    assert [state.historical_key.name for state in result.states[:3]] == ["Alpha", "Alpha", "Bravo"]


def test_run_counts_partitions_per_domain() -> None:
    """Subgraph partition counts should be reported per domain."""
    events, states = _inputs()
    result = HistoryBuilder(_config()).run(events, states)

    assert result.partition_count == 4
    assert result.stats["wiki.history.subgraphPartitions.count"] == 3
    assert result.stats["other.history.subgraphPartitions.count"] == 1


def test_run_forwards_merged_stats_to_sink() -> None:
    """The stats sink should receive the same counters as the result."""
    events, states = _inputs()
    sink = StatsAccumulator()

    result = HistoryBuilder(_config(), stats_sink=sink).run(events, states)

    assert sink.as_dict() == dict(result.stats)


def test_run_is_insensitive_to_partition_granularity() -> None:
    """One coarse partition should produce the same states as fine ones."""
    events, states = _inputs()

    class _SinglePartitioner:
        def partition(
            self,
            events: Sequence[EntityEvent],
            states: Sequence[EntityState],
        ) -> list[Partition]:
            return [Partition(events=tuple(events), states=tuple(states))]

    baseline = HistoryBuilder(_config()).run(events, states)
    single = HistoryBuilder(_config(), partitioner=_SinglePartitioner()).run(events, states)

    assert sorted(baseline.states, key=_timeline_key) == sorted(single.states, key=_timeline_key)
    assert baseline.stats.get("wiki.history.eventsMatching.OK") == single.stats.get(
        "wiki.history.eventsMatching.OK"
    )


def test_run_with_parallel_workers_matches_sequential() -> None:
    """Process-pool execution should equal sequential execution."""
    events, states = _inputs()

    sequential = HistoryBuilder(_config(worker_count=1)).run(events, states)
    parallel = HistoryBuilder(_config(worker_count=2)).run(events, states)

    assert parallel.states == sequential.states
    assert parallel.stats == sequential.stats


def test_run_rejects_partitioner_that_drops_inputs() -> None:
    """A partitioner losing states should fail the contract check."""
    events, states = _inputs()

    class _LossyPartitioner:
        def partition(
            self,
            events: Sequence[EntityEvent],
            states: Sequence[EntityState],
        ) -> list[Partition]:
            return [Partition(events=tuple(events), states=tuple(states[:1]))]

    with pytest.raises(ChroniclePartitionError):
        HistoryBuilder(_config(), partitioner=_LossyPartitioner()).run(events, states)


def test_run_logs_every_partition_on_both_execution_paths(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Sequential and process-pool runs should log the same partition events."""
    events, states = _inputs()
    logged: list[tuple[str, dict[str, object]]] = []

    class _RecordingLogger:
        def info(self, event: str, **fields: object) -> None:
            logged.append((event, fields))

        def debug(self, event: str, **fields: object) -> None:
            logged.append((event, fields))

    monkeypatch.setattr(history.builder, "_LOGGER", _RecordingLogger())

    HistoryBuilder(_config(worker_count=1)).run(events, states)
    sequential = [fields for event, fields in logged if event == "partition_processed"]
    logged.clear()
    HistoryBuilder(_config(worker_count=2)).run(events, states)
    parallel = [fields for event, fields in logged if event == "partition_processed"]

    assert len(sequential) == 4
    assert parallel == sequential
