"""Partition orchestration for history reconstruction.

This module partitions inputs, maps the reconstruction engine over every
partition, concatenates the outputs, and merges partition statistics.
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from typing import Sequence

from core.config import ChronicleConfig
from core.constants import METRIC_SUBGRAPH_PARTITIONS
from core.logging_config import get_logger
from core.types import EntityEvent, EntityState, PartitionResult, ReconstructionResult
from history.engine import ReconstructionEngine
from history.statistics import StatsAccumulator, StatsSink, merge_into_sink
from partition.subgraph_partitioner import (
    Partition,
    Partitioner,
    SubgraphPartitioner,
    validate_partitions,
)

_LOGGER = get_logger(__name__)


class HistoryBuilder:
    """Run the reconstruction engine over identity-disjoint partitions."""

    def __init__(
        self,
        config: ChronicleConfig,
        stats_sink: StatsSink | None = None,
        partitioner: Partitioner | None = None,
        engine: ReconstructionEngine | None = None,
    ) -> None:
        self._config = config
        self._stats_sink = stats_sink
        self._partitioner = partitioner or SubgraphPartitioner()
        self._engine = engine or ReconstructionEngine.from_config(config)

    def run(
        self,
        events: Sequence[EntityEvent],
        states: Sequence[EntityState],
    ) -> ReconstructionResult:
        """Rebuild history for every partition of the inputs.

        Args:
            events: Parsed events, parsing-error events already removed.
            states: Snapshot states.

        Returns:
            Concatenated states and unmatched events with merged statistics.

        Raises:
            ChroniclePartitionError: If the partitioner breaks its contract.
            ChronicleReconstructionError: If an unparsed event is given.
        """
        _LOGGER.info(
            "history_build_started",
            event_count=len(events),
            state_count=len(states),
            worker_count=self._config.worker_count,
        )
        partitions = self._partitioner.partition(events, states)
        validate_partitions(partitions, len(events), len(states))
        stats = StatsAccumulator()
        for partition in partitions:
            stats.add_domain(partition.domain, METRIC_SUBGRAPH_PARTITIONS)
        partition_results = self._process_partitions(partitions)
        result_states: list[EntityState] = []
        unmatched_events: list[EntityEvent] = []
        for partition_result in partition_results:
            result_states.extend(partition_result.states)
            unmatched_events.extend(partition_result.unmatched_events)
            stats.merge(partition_result.stats)
        if self._stats_sink is not None:
            merge_into_sink(self._stats_sink, stats.as_dict())
        _LOGGER.info(
            "history_build_completed",
            partition_count=len(partitions),
            output_state_count=len(result_states),
            matched_event_count=len(events) - len(unmatched_events),
            unmatched_event_count=len(unmatched_events),
        )
        return ReconstructionResult(
            states=tuple(result_states),
            unmatched_events=tuple(unmatched_events),
            stats=stats.as_dict(),
            partition_count=len(partitions),
        )

    def _process_partitions(self, partitions: list[Partition]) -> list[PartitionResult]:
        worker_count = min(self._config.worker_count, len(partitions))
        if worker_count <= 1:
            return [self._process_partition(partition) for partition in partitions]
        _LOGGER.info("history_build_parallel", worker_count=worker_count)
        with ProcessPoolExecutor(max_workers=worker_count) as pool:
            futures = [
                pool.submit(self._engine.process_partition, partition.events, partition.states)
                for partition in partitions
            ]
            results = [future.result() for future in futures]
        for partition, result in zip(partitions, results):
            _log_partition_result(partition, result)
        return results

    def _process_partition(self, partition: Partition) -> PartitionResult:
        result = self._engine.process_partition(partition.events, partition.states)
        _log_partition_result(partition, result)
        return result


def _log_partition_result(partition: Partition, result: PartitionResult) -> None:
    _LOGGER.debug(
        "partition_processed",
        domain=partition.domain,
        event_count=len(partition.events),
        state_count=len(partition.states),
        unmatched_event_count=len(result.unmatched_events),
    )
