"""Runtime configuration model for Chronicle.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import os

from core.constants import DEFAULT_BOT_NAME_CACHE_SIZE, DEFAULT_WORKER_COUNT
from core.errors import ChronicleConfigError
from core.timestamps import parse_history_timestamp


@dataclass(frozen=True)
class ChronicleConfig:
    """Validated runtime configuration.

    Attributes:
        worker_count: Number of processes used to reconstruct partitions.
        present_timestamp: Optional fixed processing time for block expiry.
        bot_name_cache_size: Capacity of the bot-name classification cache.
        s3_region: Optional default AWS region for S3 reads.
        s3_profile: Optional AWS profile for boto3 session initialization.
    """

    worker_count: int
    present_timestamp: datetime | None
    bot_name_cache_size: int
    s3_region: str | None
    s3_profile: str | None

    @classmethod
    def from_env(cls) -> "ChronicleConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ChronicleConfigError: If environment values are invalid.
        """
        worker_count = _parse_positive_int(
            "CHRONICLE_WORKERS", os.getenv("CHRONICLE_WORKERS", str(DEFAULT_WORKER_COUNT))
        )
        cache_size = _parse_positive_int(
            "CHRONICLE_BOT_NAME_CACHE_SIZE",
            os.getenv("CHRONICLE_BOT_NAME_CACHE_SIZE", str(DEFAULT_BOT_NAME_CACHE_SIZE)),
        )
        present_timestamp = parse_present_timestamp(os.getenv("CHRONICLE_PRESENT_TIMESTAMP"))
        return cls(
            worker_count=worker_count,
            present_timestamp=present_timestamp,
            bot_name_cache_size=cache_size,
            s3_region=os.getenv("CHRONICLE_S3_REGION"),
            s3_profile=os.getenv("CHRONICLE_S3_PROFILE"),
        )


def parse_present_timestamp(raw_value: str | None) -> datetime | None:
    """Parse an optional processing-time override.

    Args:
        raw_value: Raw timestamp string, or ``None`` to use the wall clock.

    Returns:
        Parsed UTC datetime or ``None``.

    Raises:
        ChronicleConfigError: If a value is given but cannot be parsed.
    """
    if raw_value is None or not raw_value.strip():
        return None
    parsed = parse_history_timestamp(raw_value)
    if parsed is None:
        raise ChronicleConfigError(
            "Invalid CHRONICLE_PRESENT_TIMESTAMP value: "
            f"expected YYYYMMDDHHMMSS or ISO 8601, got '{raw_value}'."
        )
    return parsed


def _parse_positive_int(variable_name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Args:
        variable_name: Environment variable name for error messages.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        ChronicleConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ChronicleConfigError(
            f"Invalid {variable_name} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {variable_name} to a numeric value."
        ) from error
    if value < 1:
        raise ChronicleConfigError(
            f"Invalid {variable_name} value: expected at least 1, got {value}."
        )
    return value
