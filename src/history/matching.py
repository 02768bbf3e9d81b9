"""Backward-in-time matching of events to states.

Events are folded from the most recent to the oldest. Each state starts
as a potential state keyed by its identity; an event targeting that
identity closes the state at the event time and, unless it is a create
event, leaves a continuation state behind at the pre-event identity.
Renames are tracked with two inverse dictionaries because some events
reference the name the entity had at the time while others reference
the name it has today.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable

from core.constants import (
    INFERRED_FROM_CONFLICT,
    INFERRED_FROM_UNCLOSED,
    METRIC_DUPLICATE_STATE_KEYS,
    METRIC_EVENTS_MATCHING_KO,
    METRIC_EVENTS_MATCHING_OK,
    METRIC_SYNTHESIZED_STATES_PREFIX,
)
from core.errors import ChronicleReconstructionError
from core.types import EntityEvent, EntityState, EventType, IdentityKey
from history.statistics import StatsAccumulator


@dataclass
class MatchingStatus:
    """Fold accumulator for one partition.

    The dictionaries are mutated in place; a status never outlives the
    single-threaded fold of the partition that created it.

    Attributes:
        potential_states: States not yet closed by an event, by identity.
        today_to_current: Today's identity to the identity being matched.
        current_to_today: Identity being matched to today's identity.
        known_states: Closed states.
        unmatched_events: Events that joined no potential state.
    """

    potential_states: dict[IdentityKey, EntityState]
    today_to_current: dict[IdentityKey, IdentityKey] = field(default_factory=dict)
    current_to_today: dict[IdentityKey, IdentityKey] = field(default_factory=dict)
    known_states: list[EntityState] = field(default_factory=list)
    unmatched_events: list[EntityEvent] = field(default_factory=list)

    def resolve_event_keys(self, event: EntityEvent) -> tuple[IdentityKey, IdentityKey]:
        """Return the ``(from_key, to_key)`` pair an event applies to."""
        if _event_type(event).changes_identity:
            return event.old_key, event.new_key
        current_key = self.today_to_current.get(event.new_key, event.new_key)
        return current_key, current_key

    def update_identity_maps(self, from_key: IdentityKey, to_key: IdentityKey) -> None:
        """Redirect lookups of today's identity to the pre-rename identity."""
        if from_key == to_key:
            return
        today_key = self.current_to_today.get(to_key, to_key)
        self.today_to_current[today_key] = from_key
        self.current_to_today.pop(to_key, None)
        self.current_to_today[from_key] = today_key

    def flush_expired_state(
        self,
        event: EntityEvent,
        to_key: IdentityKey,
        stats: StatsAccumulator,
    ) -> None:
        """Close a potential state registered after the event happened."""
        state = self.potential_states.get(to_key)
        if state is None or state.registration_timestamp is None:
            return
        if _event_time(event) >= state.registration_timestamp:
            return
        del self.potential_states[to_key]
        self.known_states.append(close_as_unclosed(state, stats))

    def flush_conflicting_state(
        self,
        event: EntityEvent,
        from_key: IdentityKey,
        stats: StatsAccumulator,
    ) -> None:
        """Close a potential state whose identity a rename is about to reuse."""
        if not _event_type(event).changes_identity:
            return
        state = self.potential_states.pop(from_key, None)
        if state is None:
            return
        event_time = _event_time(event)
        self.known_states.append(
            replace(
                state,
                registration_timestamp=event_time,
                start_timestamp=event_time,
                caused_by_event_type=EventType.CREATE,
                caused_by_actor_id=None,
                inferred_from=INFERRED_FROM_CONFLICT,
            )
        )
        stats.add_domain(
            state.domain, f"{METRIC_SYNTHESIZED_STATES_PREFIX}.{INFERRED_FROM_CONFLICT}"
        )

    def join_event_with_state(
        self,
        event: EntityEvent,
        from_key: IdentityKey,
        to_key: IdentityKey,
        stats: StatsAccumulator,
    ) -> None:
        """Close the potential state at ``to_key`` with the event, if any."""
        state = self.potential_states.pop(to_key, None)
        if state is None:
            stats.add_domain(event.domain, METRIC_EVENTS_MATCHING_KO)
            self.unmatched_events.append(event)
            return
        stats.add_domain(event.domain, METRIC_EVENTS_MATCHING_OK)
        event_type = _event_type(event)
        event_time = _event_time(event)
        if event_type is not EventType.CREATE:
            self.potential_states[from_key] = replace(
                state,
                historical_key=from_key,
                end_timestamp=event_time,
            )
        self.known_states.append(
            replace(
                state,
                start_timestamp=event_time,
                groups_historical=event.new_groups,
                blocks_historical=event.new_blocks,
                created_by_self=event.created_by_self,
                created_by_system=event.created_by_system,
                created_by_peer=event.created_by_peer,
                caused_by_event_type=event_type,
                caused_by_actor_id=event.caused_by_actor_id,
                caused_by_block_expiration=event.block_expiration,
            )
        )

    def process_event(self, event: EntityEvent, stats: StatsAccumulator) -> None:
        """Apply one event to the status."""
        from_key, to_key = self.resolve_event_keys(event)
        self.update_identity_maps(from_key, to_key)
        self.flush_expired_state(event, to_key, stats)
        self.flush_conflicting_state(event, from_key, stats)
        self.join_event_with_state(event, from_key, to_key, stats)

    def final_states(self, stats: StatsAccumulator) -> list[EntityState]:
        """Close every remaining potential state and return all states."""
        flushed = [close_as_unclosed(state, stats) for state in self.potential_states.values()]
        self.potential_states = {}
        return flushed + self.known_states


def match_events(
    events: Iterable[EntityEvent],
    states: Iterable[EntityState],
    stats: StatsAccumulator,
) -> tuple[list[EntityState], list[EntityEvent]]:
    """Match one partition's events to its states.

    Args:
        events: Parsed partition events, in input order.
        states: Partition snapshot states.
        stats: Partition statistics.

    Returns:
        Closed states (matched and synthesized) and unmatched events.
    """
    sorted_events = sort_events_descending(events)
    if not sorted_events:
        return [close_as_unclosed(state, stats) for state in states], []
    status = MatchingStatus(potential_states={})
    for state in states:
        duplicate = status.potential_states.get(state.historical_key)
        if duplicate is not None:
            stats.add_domain(state.domain, METRIC_DUPLICATE_STATE_KEYS)
            status.known_states.append(close_as_unclosed(duplicate, stats))
        status.potential_states[state.historical_key] = state
    for event in sorted_events:
        status.process_event(event, stats)
    return status.final_states(stats), status.unmatched_events


def sort_events_descending(events: Iterable[EntityEvent]) -> list[EntityEvent]:
    """Sort events most-recent first, keeping input order for equal times."""
    return sorted(events, key=_event_time, reverse=True)


def close_as_unclosed(state: EntityState, stats: StatsAccumulator) -> EntityState:
    """Close a state no event explains as existing since registration."""
    stats.add_domain(state.domain, f"{METRIC_SYNTHESIZED_STATES_PREFIX}.{INFERRED_FROM_UNCLOSED}")
    return replace(
        state,
        start_timestamp=state.registration_timestamp,
        caused_by_event_type=EventType.CREATE,
        caused_by_actor_id=None,
        inferred_from=INFERRED_FROM_UNCLOSED,
    )


def _event_time(event: EntityEvent) -> datetime:
    if event.timestamp is None:
        raise ChronicleReconstructionError(
            f"Event from {event.source_uri or 'unknown source'} has no timestamp. "
            "Only parsed events can be matched."
        )
    return event.timestamp


def _event_type(event: EntityEvent) -> EventType:
    if event.event_type is None:
        raise ChronicleReconstructionError(
            f"Event from {event.source_uri or 'unknown source'} has no event type. "
            "Only parsed events can be matched."
        )
    return event.event_type
