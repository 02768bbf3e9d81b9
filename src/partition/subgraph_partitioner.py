"""Connected-component partitioning of events and states.

Identity keys are graph vertices; an event links its old and new keys,
a state sits on its historical key. Every connected component becomes
one partition, so no rename chain ever crosses a partition boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from core.errors import ChroniclePartitionError
from core.types import EntityEvent, EntityState, IdentityKey


@dataclass(frozen=True)
class Partition:
    """Events and states of one connected component.

    Attributes:
        events: Component events in input order.
        states: Component states in input order.
    """

    events: tuple[EntityEvent, ...]
    states: tuple[EntityState, ...]

    @property
    def domain(self) -> str:
        """Domain of the component, taken from its first member."""
        if self.states:
            return self.states[0].domain
        if self.events:
            return self.events[0].domain
        return ""


class Partitioner(Protocol):
    """Partitioning collaborator used by the history builder."""

    def partition(
        self,
        events: Sequence[EntityEvent],
        states: Sequence[EntityState],
    ) -> list[Partition]: ...


class SubgraphPartitioner:
    """Union-find partitioner over identity keys."""

    def partition(
        self,
        events: Sequence[EntityEvent],
        states: Sequence[EntityState],
    ) -> list[Partition]:
        """Split inputs into identity-disjoint components.

        Args:
            events: Parsed events.
            states: Snapshot states.

        Returns:
            Partitions ordered by the first input that reached them.
        """
        keys = _DisjointSet()
        for event in events:
            keys.union(event.old_key, event.new_key)
        for state in states:
            keys.add(state.historical_key)
        grouped_events: dict[IdentityKey, list[EntityEvent]] = {}
        grouped_states: dict[IdentityKey, list[EntityState]] = {}
        order: dict[IdentityKey, None] = {}
        for event in events:
            root = keys.find(event.new_key)
            order.setdefault(root, None)
            grouped_events.setdefault(root, []).append(event)
        for state in states:
            root = keys.find(state.historical_key)
            order.setdefault(root, None)
            grouped_states.setdefault(root, []).append(state)
        return [
            Partition(
                events=tuple(grouped_events.get(root, ())),
                states=tuple(grouped_states.get(root, ())),
            )
            for root in order
        ]


def validate_partitions(
    partitions: Sequence[Partition],
    event_count: int,
    state_count: int,
) -> None:
    """Check identity closure and exhaustiveness of a partition set.

    Args:
        partitions: Partitioner output.
        event_count: Number of events given to the partitioner.
        state_count: Number of states given to the partitioner.

    Raises:
        ChroniclePartitionError: If a key spans partitions or inputs are lost.
    """
    owners: dict[IdentityKey, int] = {}
    for index, partition in enumerate(partitions):
        for key in _partition_keys(partition):
            owner = owners.setdefault(key, index)
            if owner != index:
                raise ChroniclePartitionError(
                    f"Identity key {key.domain}:{key.name} appears in partitions "
                    f"{owner} and {index}. Partitions must contain whole rename chains."
                )
    partitioned_events = sum(len(partition.events) for partition in partitions)
    partitioned_states = sum(len(partition.states) for partition in partitions)
    if partitioned_events != event_count or partitioned_states != state_count:
        raise ChroniclePartitionError(
            f"Partitions hold {partitioned_events}/{event_count} events and "
            f"{partitioned_states}/{state_count} states. "
            "Every input must belong to exactly one partition."
        )


def _partition_keys(partition: Partition) -> set[IdentityKey]:
    keys = {state.historical_key for state in partition.states}
    for event in partition.events:
        keys.add(event.old_key)
        keys.add(event.new_key)
    return keys


class _DisjointSet:
    """Union-find with path halving."""

    def __init__(self) -> None:
        self._parents: dict[IdentityKey, IdentityKey] = {}

    def add(self, key: IdentityKey) -> None:
        self._parents.setdefault(key, key)

    def find(self, key: IdentityKey) -> IdentityKey:
        self.add(key)
        while self._parents[key] != key:
            self._parents[key] = self._parents[self._parents[key]]
            key = self._parents[key]
        return key

    def union(self, left: IdentityKey, right: IdentityKey) -> None:
        left_root = self.find(left)
        right_root = self.find(right)
        if left_root != right_root:
            self._parents[right_root] = left_root
