"""Field readers shared by event and state row parsing.

Each reader returns a value and appends a description to ``errors``
when the field is present but malformed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from core.timestamps import parse_history_timestamp


def read_string(
    payload: Mapping[str, Any],
    field_name: str,
    errors: list[str],
    required: bool = True,
) -> str | None:
    """Read a non-empty string field."""
    value = payload.get(field_name)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            errors.append(f"missing field '{field_name}'")
        return None
    if not isinstance(value, str):
        errors.append(f"field '{field_name}' must be a string")
        return None
    return value


def read_optional_int(payload: Mapping[str, Any], field_name: str, errors: list[str]) -> int | None:
    """Read an optional integer field, rejecting booleans."""
    value = payload.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"field '{field_name}' must be an integer")
        return None
    return value


def read_bool(payload: Mapping[str, Any], field_name: str, errors: list[str]) -> bool:
    """Read a boolean flag, defaulting to ``False``."""
    value = payload.get(field_name, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        errors.append(f"field '{field_name}' must be a boolean")
        return False
    return value


def read_string_tuple(
    payload: Mapping[str, Any],
    field_name: str,
    errors: list[str],
) -> tuple[str, ...]:
    """Read a list of strings, also accepting a comma-separated string."""
    value = payload.get(field_name)
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(item.strip() for item in value.split(",") if item.strip())
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    errors.append(f"field '{field_name}' must be a list of strings")
    return ()


def read_timestamp(
    payload: Mapping[str, Any],
    field_name: str,
    errors: list[str],
    required: bool = True,
) -> datetime | None:
    """Read a MediaWiki or ISO 8601 timestamp field."""
    raw_value = read_string(payload, field_name, errors, required=required)
    if raw_value is None:
        return None
    parsed = parse_history_timestamp(raw_value)
    if parsed is None:
        errors.append(f"field '{field_name}' is not a valid timestamp: '{raw_value}'")
    return parsed
