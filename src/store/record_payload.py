"""Serialization of events and states into output rows.

This module centralizes row layouts shared by the Parquet history
writer and the JSONL error writer.
"""

from __future__ import annotations

from core.timestamps import format_history_timestamp
from core.types import EntityEvent, EntityState


def event_to_payload(event: EntityEvent) -> dict[str, object]:
    """Serialize an event into a JSON-safe payload.

    Args:
        event: Event instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "timestamp": format_history_timestamp(event.timestamp),
        "event_type": event.event_type.value if event.event_type is not None else None,
        "domain": event.domain,
        "old_name": event.old_key.name,
        "new_name": event.new_key.name,
        "caused_by_actor_id": event.caused_by_actor_id,
        "new_groups": list(event.new_groups),
        "new_blocks": list(event.new_blocks),
        "block_expiration": event.block_expiration,
        "created_by_self": event.created_by_self,
        "created_by_system": event.created_by_system,
        "created_by_peer": event.created_by_peer,
        "parsing_errors": list(event.parsing_errors),
        "source_uri": event.source_uri,
    }


def state_to_row(state: EntityState) -> dict[str, object]:
    """Flatten a reconstructed state into one history row.

    Args:
        state: Reconstructed state.

    Returns:
        Row dictionary matching the history table schema.
    """
    return {
        "entity_id": state.entity_id,
        "domain": state.domain,
        "name_historical": state.historical_key.name,
        "name": state.current_key.name,
        "groups_historical": list(state.groups_historical),
        "groups": list(state.groups),
        "blocks_historical": list(state.blocks_historical),
        "blocks": list(state.blocks),
        "registration_timestamp": state.registration_timestamp,
        "created_by_self": state.created_by_self,
        "created_by_system": state.created_by_system,
        "created_by_peer": state.created_by_peer,
        "anonymous": state.anonymous,
        "bot_by_name": state.bot_by_name,
        "start_timestamp": state.start_timestamp,
        "end_timestamp": state.end_timestamp,
        "caused_by_event_type": (
            state.caused_by_event_type.value if state.caused_by_event_type is not None else None
        ),
        "caused_by_actor_id": state.caused_by_actor_id,
        "caused_by_block_expiration": state.caused_by_block_expiration,
        "inferred_from": state.inferred_from,
    }
