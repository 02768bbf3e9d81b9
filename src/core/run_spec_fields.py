"""Type-safe field parsing helpers for run-spec execution.

This module centralizes primitive parsing so run-spec executors stay
concise and produce consistent validation errors.
"""

from __future__ import annotations

from typing import Mapping

from core.errors import ChronicleRunSpecError


def required_string(args: Mapping[str, object], field_name: str) -> str:
    """Read a required string field from a run-spec step."""
    value = optional_string(args, field_name)
    if value is None:
        raise ChronicleRunSpecError(f"Run-spec step is missing required field '{field_name}'.")
    return value


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read an optional string field from a run-spec step."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise ChronicleRunSpecError(f"Run-spec field '{field_name}' must be a string when provided.")


def optional_bool(args: Mapping[str, object], field_name: str, default_value: bool) -> bool:
    """Read an optional boolean field from a run-spec step."""
    value = args.get(field_name)
    if value is None:
        return default_value
    if isinstance(value, bool):
        return value
    raise ChronicleRunSpecError(f"Run-spec field '{field_name}' must be true or false.")


def string_tuple(args: Mapping[str, object], field_name: str) -> tuple[str, ...]:
    """Read an optional list of strings from a run-spec step."""
    value = args.get(field_name)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise ChronicleRunSpecError(f"Run-spec field '{field_name}' must be a list of strings.")
