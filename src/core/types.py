"""Shared typed models.

This module defines immutable data models used by ingest, partition,
history and store layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping


@dataclass(frozen=True, order=True)
class IdentityKey:
    """Identity of an entity as known at one point in time.

    Attributes:
        domain: Entity domain, for example a wiki database name.
        name: Entity name at that point in time.
    """

    domain: str
    name: str


class EventType(str, Enum):
    """Closed set of lifecycle event kinds."""

    CREATE = "create"
    RENAME = "rename"
    MOVE = "move"
    ALTER_GROUPS = "altergroups"
    ALTER_BLOCKS = "alterblocks"
    DELETE = "delete"
    RESTORE = "restore"

    @property
    def changes_identity(self) -> bool:
        """Whether events of this kind move an entity to a new identity key."""
        return self in (EventType.RENAME, EventType.MOVE)


@dataclass(frozen=True)
class EntityEvent:
    """Discrete lifecycle fact read from the event log.

    Attributes:
        timestamp: UTC event time, ``None`` only when parsing failed.
        event_type: Event kind, ``None`` only when parsing failed.
        old_key: Identity before the event.
        new_key: Identity after the event, equal to ``old_key`` unless renamed.
        caused_by_actor_id: Optional id of the actor who caused the event.
        new_groups: Group set after the event.
        new_blocks: Block set after the event.
        block_expiration: Raw block expiration value.
        created_by_self: Entity created by itself.
        created_by_system: Entity created by the system.
        created_by_peer: Entity created by another entity.
        parsing_errors: Parsing failures found when reading the source row.
        source_uri: Origin of the source row.
    """

    timestamp: datetime | None
    event_type: EventType | None
    old_key: IdentityKey
    new_key: IdentityKey
    caused_by_actor_id: int | None = None
    new_groups: tuple[str, ...] = ()
    new_blocks: tuple[str, ...] = ()
    block_expiration: str | None = None
    created_by_self: bool = False
    created_by_system: bool = False
    created_by_peer: bool = False
    parsing_errors: tuple[str, ...] = ()
    source_uri: str = ""

    @property
    def domain(self) -> str:
        """Domain used for statistics and error reporting."""
        return self.new_key.domain


@dataclass(frozen=True)
class EntityState:
    """Snapshot of an entity and, after reconstruction, one validity interval.

    Attributes:
        entity_id: Stable entity id, ``0`` for anonymous entities.
        historical_key: Identity during this interval.
        current_key: Identity as observed at snapshot time.
        groups_historical: Groups during this interval.
        blocks_historical: Blocks during this interval.
        registration_timestamp: Entity registration time.
        created_by_self: Entity created by itself.
        created_by_system: Entity created by the system.
        created_by_peer: Entity created by another entity.
        start_timestamp: Interval start, inclusive.
        end_timestamp: Interval end, exclusive, ``None`` when still open.
        caused_by_event_type: Event kind that opened this interval.
        caused_by_actor_id: Actor of the event that opened this interval.
        caused_by_block_expiration: Raw block expiration of that event.
        inferred_from: Provenance tag for synthesized intervals.
        groups: Most recent groups, shared by every interval of the entity.
        blocks: Most recent blocks, shared by every interval of the entity.
        anonymous: Whether the entity is anonymous.
        bot_by_name: Whether the historical name looks like a bot name.
    """

    entity_id: int
    historical_key: IdentityKey
    current_key: IdentityKey
    groups_historical: tuple[str, ...] = ()
    blocks_historical: tuple[str, ...] = ()
    registration_timestamp: datetime | None = None
    created_by_self: bool = False
    created_by_system: bool = False
    created_by_peer: bool = False
    start_timestamp: datetime | None = None
    end_timestamp: datetime | None = None
    caused_by_event_type: EventType | None = None
    caused_by_actor_id: int | None = None
    caused_by_block_expiration: str | None = None
    inferred_from: str | None = None
    groups: tuple[str, ...] = ()
    blocks: tuple[str, ...] = ()
    anonymous: bool = False
    bot_by_name: bool = False

    @property
    def domain(self) -> str:
        """Domain used for grouping, statistics and output rows."""
        return self.historical_key.domain


@dataclass(frozen=True)
class PartitionResult:
    """Reconstruction output of one partition.

    Attributes:
        states: Matched and synthesized states.
        unmatched_events: Events that joined no state.
        stats: Statistics counted while processing the partition.
    """

    states: tuple[EntityState, ...]
    unmatched_events: tuple[EntityEvent, ...]
    stats: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ReconstructionResult:
    """Concatenated reconstruction output of every partition.

    Attributes:
        states: Reconstructed state history.
        unmatched_events: Events that joined no state.
        stats: Merged statistics of every partition.
        partition_count: Number of processed partitions.
    """

    states: tuple[EntityState, ...]
    unmatched_events: tuple[EntityEvent, ...]
    stats: Mapping[str, int] = field(default_factory=dict)
    partition_count: int = 0


@dataclass(frozen=True)
class RebuildOptions:
    """History rebuild command options.

    Attributes:
        events_uri: Event JSONL file, directory, or S3 URI.
        states_uri: State JSONL file, directory, or S3 URI.
        output_dir: Local directory receiving history, errors and stats.
        domains: Optional domain constraint, empty for every domain.
        write_errors: Whether to write parsing and matching errors.
    """

    events_uri: str
    states_uri: str
    output_dir: str
    domains: tuple[str, ...] = ()
    write_errors: bool = False


@dataclass(frozen=True)
class RebuildSummary:
    """History rebuild output artifacts and counts.

    Attributes:
        history_path: Written Parquet history path.
        stats_path: Written statistics JSON path.
        errors_path: Optional written errors JSONL path.
        state_count: Number of written states.
        unmatched_event_count: Number of unmatched events.
        parsing_error_count: Number of events rejected by parsing.
    """

    history_path: str
    stats_path: str
    errors_path: str | None
    state_count: int
    unmatched_event_count: int
    parsing_error_count: int
