"""Event row parsing.

Event rows never abort ingestion: a malformed row becomes an event
carrying ``parsing_errors`` so it can be counted and reported next to
matching errors.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from core.config import ChronicleConfig
from core.constants import METRIC_EVENTS_PARSING_KO, METRIC_EVENTS_PARSING_OK
from core.types import EntityEvent, EventType, IdentityKey
from history.statistics import StatsAccumulator
from ingest.input_reader import JsonlRow, read_jsonl_rows
from ingest.row_fields import (
    read_bool,
    read_optional_int,
    read_string,
    read_string_tuple,
    read_timestamp,
)


def read_event_records(source_uri: str, config: ChronicleConfig) -> list[EntityEvent]:
    """Load events from a JSONL source.

    Args:
        source_uri: Local file, directory, or ``s3://`` URI.
        config: Runtime configuration.

    Returns:
        Events in source order, malformed ones carrying parsing errors.
    """
    return [build_event(row) for row in read_jsonl_rows(source_uri, config)]


def build_event(row: JsonlRow) -> EntityEvent:
    """Build one event from a raw row."""
    if row.payload is None:
        empty_key = IdentityKey(domain="", name="")
        return EntityEvent(
            timestamp=None,
            event_type=None,
            old_key=empty_key,
            new_key=empty_key,
            parsing_errors=(row.error or "invalid row",),
            source_uri=row.source_uri,
        )
    return _event_from_payload(row.payload, row.source_uri)


def split_parsing_errors(
    events: Sequence[EntityEvent],
    stats: StatsAccumulator,
) -> tuple[list[EntityEvent], list[EntityEvent]]:
    """Separate parsed events from parsing-error events, counting both.

    Args:
        events: Events read from the source.
        stats: Run statistics.

    Returns:
        Parsed events and parsing-error events, each in source order.
    """
    parsed_events: list[EntityEvent] = []
    error_events: list[EntityEvent] = []
    for event in events:
        if event.parsing_errors:
            stats.add_domain(event.domain, METRIC_EVENTS_PARSING_KO)
            error_events.append(event)
        else:
            stats.add_domain(event.domain, METRIC_EVENTS_PARSING_OK)
            parsed_events.append(event)
    return parsed_events, error_events


def _event_from_payload(payload: Mapping[str, Any], source_uri: str) -> EntityEvent:
    errors: list[str] = []
    domain = read_string(payload, "domain", errors) or ""
    event_type = _read_event_type(payload, errors)
    timestamp = read_timestamp(payload, "timestamp", errors)
    new_name = read_string(payload, "new_name", errors) or ""
    old_name_required = event_type is not None and event_type.changes_identity
    old_name = read_string(payload, "old_name", errors, required=old_name_required)
    return EntityEvent(
        timestamp=timestamp,
        event_type=event_type,
        old_key=IdentityKey(domain=domain, name=old_name or new_name),
        new_key=IdentityKey(domain=domain, name=new_name),
        caused_by_actor_id=read_optional_int(payload, "caused_by_actor_id", errors),
        new_groups=read_string_tuple(payload, "new_groups", errors),
        new_blocks=read_string_tuple(payload, "new_blocks", errors),
        block_expiration=read_string(payload, "block_expiration", errors, required=False),
        created_by_self=read_bool(payload, "created_by_self", errors),
        created_by_system=read_bool(payload, "created_by_system", errors),
        created_by_peer=read_bool(payload, "created_by_peer", errors),
        parsing_errors=tuple(errors),
        source_uri=source_uri,
    )


def _read_event_type(payload: Mapping[str, Any], errors: list[str]) -> EventType | None:
    raw_value = read_string(payload, "event_type", errors)
    if raw_value is None:
        return None
    try:
        return EventType(raw_value.strip().lower())
    except ValueError:
        supported = ", ".join(event_type.value for event_type in EventType)
        errors.append(f"unsupported event_type '{raw_value}', expected one of: {supported}")
        return None
