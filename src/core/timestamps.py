"""Timestamp parsing helpers.

This module turns raw timestamp strings from event payloads and config
values into timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime, timezone

from core.constants import INDEFINITE_TIMESTAMP_VALUES, MEDIAWIKI_TIMESTAMP_FORMAT


def parse_history_timestamp(raw_value: str | None) -> datetime | None:
    """Parse a raw timestamp value.

    Accepts MediaWiki ``YYYYMMDDHHMMSS`` strings and ISO 8601 strings.
    Naive values are interpreted as UTC.

    Args:
        raw_value: Raw timestamp string.

    Returns:
        UTC datetime, or ``None`` for empty, indefinite and unparsable values.
    """
    if raw_value is None:
        return None
    stripped = raw_value.strip()
    if not stripped or stripped.lower() in INDEFINITE_TIMESTAMP_VALUES:
        return None
    if len(stripped) == 14 and stripped.isdigit():
        return _parse_mediawiki_timestamp(stripped)
    return _parse_iso_timestamp(stripped)


def format_history_timestamp(value: datetime | None) -> str | None:
    """Render a datetime as an ISO 8601 UTC string."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def _parse_mediawiki_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.strptime(value, MEDIAWIKI_TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def _parse_iso_timestamp(value: str) -> datetime | None:
    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
