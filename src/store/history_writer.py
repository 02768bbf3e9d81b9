"""History output persistence.

This module writes reconstructed states to Parquet, parsing and matching
errors to JSONL, and run statistics to JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping, Sequence

import pyarrow as pa
import pyarrow.parquet as pq

from core.constants import ERROR_TYPE_MATCHING, ERROR_TYPE_PARSING
from core.errors import ChronicleStoreError
from core.logging_config import get_logger
from core.types import EntityEvent, EntityState
from store.record_payload import event_to_payload, state_to_row

_LOGGER = get_logger(__name__)

_TIMESTAMP_TYPE = pa.timestamp("us", tz="UTC")
_STRING_LIST_TYPE = pa.list_(pa.string())

HISTORY_SCHEMA = pa.schema(
    [
        pa.field("entity_id", pa.int64(), nullable=False),
        pa.field("domain", pa.string(), nullable=False),
        pa.field("name_historical", pa.string(), nullable=False),
        pa.field("name", pa.string(), nullable=False),
        pa.field("groups_historical", _STRING_LIST_TYPE),
        pa.field("groups", _STRING_LIST_TYPE),
        pa.field("blocks_historical", _STRING_LIST_TYPE),
        pa.field("blocks", _STRING_LIST_TYPE),
        pa.field("registration_timestamp", _TIMESTAMP_TYPE),
        pa.field("created_by_self", pa.bool_()),
        pa.field("created_by_system", pa.bool_()),
        pa.field("created_by_peer", pa.bool_()),
        pa.field("anonymous", pa.bool_()),
        pa.field("bot_by_name", pa.bool_()),
        pa.field("start_timestamp", _TIMESTAMP_TYPE),
        pa.field("end_timestamp", _TIMESTAMP_TYPE),
        pa.field("caused_by_event_type", pa.string()),
        pa.field("caused_by_actor_id", pa.int64()),
        pa.field("caused_by_block_expiration", pa.string()),
        pa.field("inferred_from", pa.string()),
    ]
)


def write_history_parquet(history_path: Path, states: Sequence[EntityState]) -> None:
    """Write reconstructed states to a Parquet file.

    Args:
        history_path: Output file path.
        states: Reconstructed states.

    Raises:
        ChronicleStoreError: If the file cannot be written.
    """
    rows = [state_to_row(state) for state in states]
    table = pa.Table.from_pylist(rows, schema=HISTORY_SCHEMA)
    try:
        history_path.parent.mkdir(parents=True, exist_ok=True)
        pq.write_table(table, str(history_path))
    except (OSError, pa.ArrowException) as error:
        raise ChronicleStoreError(
            f"Failed to write history at {history_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
    _LOGGER.info("history_written", history_path=str(history_path), row_count=len(rows))


def write_error_records(
    errors_path: Path,
    parsing_errors: Sequence[EntityEvent],
    unmatched_events: Sequence[EntityEvent],
) -> None:
    """Write parsing and matching errors as JSONL.

    Args:
        errors_path: Output file path.
        parsing_errors: Events rejected while parsing.
        unmatched_events: Events that joined no state.

    Raises:
        ChronicleStoreError: If the file cannot be written.
    """
    lines = [_error_line(event, ERROR_TYPE_PARSING) for event in parsing_errors]
    lines.extend(_error_line(event, ERROR_TYPE_MATCHING) for event in unmatched_events)
    body = "\n".join(lines) + "\n" if lines else ""
    _write_text(errors_path, body)


def write_stats_json(stats_path: Path, stats: Mapping[str, int]) -> None:
    """Write run statistics as a sorted JSON object."""
    _write_text(stats_path, json.dumps(dict(stats), indent=2, sort_keys=True) + "\n")


def _error_line(event: EntityEvent, error_type: str) -> str:
    payload = {
        "domain": event.domain,
        "error_type": error_type,
        "event": event_to_payload(event),
    }
    return json.dumps(payload, sort_keys=True)


def _write_text(path: Path, body: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
    except OSError as error:
        raise ChronicleStoreError(
            f"Failed to write {path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
