"""Per-partition reconstruction engine.

This module runs the matching fold and the propagation passes for one
partition. It has no side effects beyond the statistics it returns, so a
failed partition can be recomputed from the same inputs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from core.config import ChronicleConfig
from core.errors import ChronicleReconstructionError
from core.timestamps import utc_now
from core.types import EntityEvent, EntityState, PartitionResult
from history.matching import match_events
from history.name_classifier import BotNameClassifier, LruCache
from history.propagation import propagate_states
from history.statistics import StatsAccumulator


class ReconstructionEngine:
    """Rebuild state history for independent partitions."""

    def __init__(self, present_timestamp: datetime, classifier: BotNameClassifier) -> None:
        """Initialize engine.

        Args:
            present_timestamp: Processing time used to decide block expirations.
            classifier: Bot-name classifier owned by this engine.
        """
        self._present_timestamp = present_timestamp
        self._classifier = classifier

    @classmethod
    def from_config(cls, config: ChronicleConfig) -> "ReconstructionEngine":
        """Build an engine from runtime configuration."""
        present_timestamp = config.present_timestamp or utc_now()
        classifier = BotNameClassifier(LruCache(config.bot_name_cache_size))
        return cls(present_timestamp, classifier)

    @property
    def present_timestamp(self) -> datetime:
        return self._present_timestamp

    def process_partition(
        self,
        events: Sequence[EntityEvent],
        states: Sequence[EntityState],
    ) -> PartitionResult:
        """Reconstruct one partition.

        Args:
            events: Parsed events of the partition.
            states: Snapshot states of the partition.

        Returns:
            Reconstructed states, unmatched events and partition statistics.

        Raises:
            ChronicleReconstructionError: If an event carries parsing errors.
        """
        _require_parsed_events(events)
        stats = StatsAccumulator()
        matched_states, unmatched_events = match_events(events, states, stats)
        propagated_states = propagate_states(
            matched_states, self._present_timestamp, self._classifier, stats
        )
        return PartitionResult(
            states=tuple(propagated_states),
            unmatched_events=tuple(unmatched_events),
            stats=stats.as_dict(),
        )


def _require_parsed_events(events: Sequence[EntityEvent]) -> None:
    """Reject events that failed parsing upstream."""
    for event in events:
        if event.parsing_errors or event.timestamp is None or event.event_type is None:
            raise ChronicleReconstructionError(
                f"Event from {event.source_uri or 'unknown source'} reached reconstruction "
                f"with parsing errors {list(event.parsing_errors)}. "
                "Filter parsing-error events before running the engine."
            )
