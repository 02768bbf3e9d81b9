"""Forward propagation passes over one entity's ordered states.

Some attributes can only be known by scanning an entity's history from
oldest to newest: blocks and groups carry forward until an event changes
them, and registration is fixed at the first state. Every pass returns a
new list. Blocks must run first because it may add unblock states.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from core.constants import INFERRED_FROM_UNBLOCK, METRIC_SYNTHESIZED_STATES_PREFIX
from core.timestamps import parse_history_timestamp
from core.types import EntityState, EventType
from history.name_classifier import BotNameClassifier
from history.statistics import StatsAccumulator


def propagate_states(
    states: Iterable[EntityState],
    present_timestamp: datetime,
    classifier: BotNameClassifier,
    stats: StatsAccumulator,
) -> list[EntityState]:
    """Group states by entity, order each group, and run every pass.

    Args:
        states: Closed states of one partition.
        present_timestamp: Processing time; later block expirations are ignored.
        classifier: Bot-name classifier.
        stats: Partition statistics.

    Returns:
        Propagated states, grouped by entity and ascending by start.
    """
    propagated: list[EntityState] = []
    for entity_states in group_by_entity(states).values():
        ordered = sort_by_start(entity_states)
        blocks_propagated = propagate_blocks(ordered, present_timestamp, stats)
        groups_propagated = propagate_groups(blocks_propagated)
        registration_propagated = propagate_registration(groups_propagated)
        propagated.extend(update_derived_flags(registration_propagated, classifier))
    return propagated


def group_by_entity(states: Iterable[EntityState]) -> dict[tuple[str, int], list[EntityState]]:
    """Group states by ``(domain, entity_id)`` keeping first-seen order."""
    grouped: dict[tuple[str, int], list[EntityState]] = {}
    for state in states:
        grouped.setdefault((state.domain, state.entity_id), []).append(state)
    return grouped


def sort_by_start(states: list[EntityState]) -> list[EntityState]:
    """Stable ascending sort by start timestamp, undefined starts first."""
    return sorted(
        states,
        key=lambda state: (state.start_timestamp is not None, state.start_timestamp),
    )


def propagate_blocks(
    states: list[EntityState],
    present_timestamp: datetime,
    stats: StatsAccumulator | None = None,
) -> list[EntityState]:
    """Carry blocks forward, splitting states at past block expirations.

    A carried expiration that is a concrete timestamp, earlier than the
    present, and at or before the end of the state being worked splits it:
    the state ends at the expiration and an unblock state with empty
    blocks starts there. The last state's blocks become every state's
    most recent blocks.

    Args:
        states: One entity's states, ascending by start.
        present_timestamp: Processing time.
        stats: Optional statistics receiving synthesized-state counts.

    Returns:
        States with historical and most recent blocks filled in.
    """
    if not states:
        return []
    processed = [states[0]]
    carried_blocks = states[0].blocks_historical
    carried_expiration: str | None = None
    for state in states[1:]:
        if state.caused_by_event_type is EventType.ALTER_BLOCKS:
            effective_blocks = state.blocks_historical
            effective_expiration = state.caused_by_block_expiration
        else:
            effective_blocks = carried_blocks
            effective_expiration = carried_expiration
        expiration = parse_history_timestamp(effective_expiration)
        if expiration is not None and _expires_within(expiration, state, present_timestamp):
            processed.append(
                replace(state, blocks_historical=effective_blocks, end_timestamp=expiration)
            )
            processed.append(_unblock_state(state, expiration))
            if stats is not None:
                stats.add_domain(
                    state.domain, f"{METRIC_SYNTHESIZED_STATES_PREFIX}.{INFERRED_FROM_UNBLOCK}"
                )
            carried_blocks, carried_expiration = (), None
        else:
            processed.append(replace(state, blocks_historical=effective_blocks))
            carried_blocks, carried_expiration = effective_blocks, effective_expiration
    most_recent_blocks = processed[-1].blocks_historical
    return [replace(state, blocks=most_recent_blocks) for state in processed]


def propagate_groups(states: list[EntityState]) -> list[EntityState]:
    """Carry groups forward from group changes, then broadcast the last ones."""
    if not states:
        return []
    processed = [states[0]]
    carried_groups = states[0].groups_historical
    for state in states[1:]:
        if state.caused_by_event_type is EventType.ALTER_GROUPS:
            carried_groups = state.groups_historical
            processed.append(state)
        else:
            processed.append(replace(state, groups_historical=carried_groups))
    most_recent_groups = processed[-1].groups_historical
    return [replace(state, groups=most_recent_groups) for state in processed]


def propagate_registration(states: list[EntityState]) -> list[EntityState]:
    """Copy the first state's registration and creation flags to every state."""
    if not states:
        return []
    first = states[0]
    return [
        replace(
            state,
            registration_timestamp=first.registration_timestamp,
            created_by_self=first.created_by_self,
            created_by_system=first.created_by_system,
            created_by_peer=first.created_by_peer,
        )
        for state in states
    ]


def update_derived_flags(
    states: list[EntityState],
    classifier: BotNameClassifier,
) -> list[EntityState]:
    """Set anonymous and bot-by-name flags from id and historical name."""
    return [
        replace(
            state,
            anonymous=state.entity_id == 0,
            bot_by_name=classifier.is_bot_by_name(state.historical_key.name),
        )
        for state in states
    ]


def _expires_within(
    expiration: datetime,
    state: EntityState,
    present_timestamp: datetime,
) -> bool:
    if expiration >= present_timestamp:
        return False
    return state.end_timestamp is None or expiration <= state.end_timestamp


def _unblock_state(state: EntityState, expiration: datetime) -> EntityState:
    return replace(
        state,
        start_timestamp=expiration,
        blocks_historical=(),
        caused_by_event_type=EventType.ALTER_BLOCKS,
        caused_by_actor_id=None,
        caused_by_block_expiration=None,
        inferred_from=INFERRED_FROM_UNBLOCK,
    )
