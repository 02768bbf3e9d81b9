"""Snapshot state row parsing.

Unlike events, a malformed state row aborts ingestion: states are the
backbone of every reconstructed timeline and cannot be skipped.
"""

from __future__ import annotations

from typing import Any, Mapping, NoReturn

from core.config import ChronicleConfig
from core.errors import ChronicleIngestError
from core.types import EntityState, IdentityKey
from ingest.input_reader import JsonlRow, read_jsonl_rows
from ingest.row_fields import (
    read_bool,
    read_optional_int,
    read_string,
    read_string_tuple,
    read_timestamp,
)


def read_state_records(source_uri: str, config: ChronicleConfig) -> list[EntityState]:
    """Load snapshot states from a JSONL source.

    Args:
        source_uri: Local file, directory, or ``s3://`` URI.
        config: Runtime configuration.

    Returns:
        States in source order.

    Raises:
        ChronicleIngestError: If any row is malformed.
    """
    return [build_state(row) for row in read_jsonl_rows(source_uri, config)]


def build_state(row: JsonlRow) -> EntityState:
    """Build one snapshot state from a raw row.

    Raises:
        ChronicleIngestError: If the row is malformed.
    """
    if row.payload is None:
        _raise_state_error(row.source_uri, [row.error or "invalid row"])
    return _state_from_payload(row.payload, row.source_uri)


def _state_from_payload(payload: Mapping[str, Any], source_uri: str) -> EntityState:
    errors: list[str] = []
    entity_id = read_optional_int(payload, "entity_id", errors)
    if payload.get("entity_id") is None:
        errors.append("missing field 'entity_id'")
    domain = read_string(payload, "domain", errors)
    name = read_string(payload, "name", errors)
    groups = read_string_tuple(payload, "groups", errors)
    blocks = read_string_tuple(payload, "blocks", errors)
    registration = read_timestamp(payload, "registration_timestamp", errors, required=False)
    created_by_self = read_bool(payload, "created_by_self", errors)
    created_by_system = read_bool(payload, "created_by_system", errors)
    created_by_peer = read_bool(payload, "created_by_peer", errors)
    if errors or entity_id is None or domain is None or name is None:
        _raise_state_error(source_uri, errors)
    key = IdentityKey(domain=domain, name=name)
    return EntityState(
        entity_id=entity_id,
        historical_key=key,
        current_key=key,
        groups_historical=groups,
        blocks_historical=blocks,
        registration_timestamp=registration,
        created_by_self=created_by_self,
        created_by_system=created_by_system,
        created_by_peer=created_by_peer,
        groups=groups,
        blocks=blocks,
    )


def _raise_state_error(source_uri: str, errors: list[str]) -> NoReturn:
    raise ChronicleIngestError(
        f"Invalid state record at {source_uri}: {'; '.join(errors)}. "
        "Fix the state row and retry the rebuild."
    )
