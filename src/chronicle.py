"""Public library surface for Chronicle.

This module provides a stable import path for library users.
It re-exports the primary client, engine, and typed models.
"""

from __future__ import annotations

from core.config import ChronicleConfig
from core.types import (
    EntityEvent,
    EntityState,
    EventType,
    IdentityKey,
    PartitionResult,
    RebuildOptions,
    RebuildSummary,
    ReconstructionResult,
)
from history.builder import HistoryBuilder
from history.client import ChronicleClient
from history.engine import ReconstructionEngine
from history.runner import rebuild_history
from history.statistics import StatsAccumulator
from partition.subgraph_partitioner import SubgraphPartitioner

__all__ = [
    "ChronicleClient",
    "ChronicleConfig",
    "EntityEvent",
    "EntityState",
    "EventType",
    "HistoryBuilder",
    "IdentityKey",
    "PartitionResult",
    "RebuildOptions",
    "RebuildSummary",
    "ReconstructionEngine",
    "ReconstructionResult",
    "StatsAccumulator",
    "SubgraphPartitioner",
    "rebuild_history",
]
