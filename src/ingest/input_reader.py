"""JSONL source readers for ingestion.

This module loads JSON rows from local paths or S3 prefixes.
Rows that are not valid JSON objects are returned with an error
so callers decide whether to reject or report them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from core.config import ChronicleConfig
from core.constants import SUPPORTED_INPUT_EXTENSIONS
from core.errors import ChronicleDependencyError, ChronicleIngestError
from core.s3_uri import S3Location, parse_s3_uri


@dataclass(frozen=True)
class JsonlRow:
    """One raw JSONL row.

    Attributes:
        source_uri: ``path:line`` origin of the row.
        payload: Parsed JSON object, ``None`` when the row is invalid.
        error: Parse failure description for invalid rows.
    """

    source_uri: str
    payload: dict[str, Any] | None
    error: str | None = None


def read_jsonl_rows(source_uri: str, config: ChronicleConfig) -> list[JsonlRow]:
    """Load JSONL rows from local files or S3.

    Args:
        source_uri: Local file, local directory, or ``s3://`` URI.
        config: Runtime configuration for S3 session defaults.

    Returns:
        Ordered list of rows.

    Raises:
        ChronicleIngestError: If the source cannot be read.
    """
    if source_uri.startswith("s3://"):
        return _read_s3_rows(source_uri, config)
    return _read_local_rows(Path(source_uri).expanduser())


def _read_local_rows(source_path: Path) -> list[JsonlRow]:
    """Read rows from the local file system.

    Args:
        source_path: Input file or directory.

    Returns:
        Collected rows.

    Raises:
        ChronicleIngestError: If the path is missing or unreadable.
    """
    if not source_path.exists():
        raise ChronicleIngestError(
            f"Failed to read source at {source_path}: path does not exist. "
            "Provide an existing file or directory."
        )
    if source_path.is_file():
        return _read_file_rows(source_path)
    rows: list[JsonlRow] = []
    for file_path in sorted(source_path.rglob("*")):
        if file_path.is_file() and _is_supported_key(file_path.name):
            rows.extend(_read_file_rows(file_path))
    return rows


def _read_file_rows(file_path: Path) -> list[JsonlRow]:
    try:
        body = file_path.read_text(encoding="utf-8")
    except OSError as error:
        raise ChronicleIngestError(
            f"Failed to read source file {file_path}: {error}. Check file permissions."
        ) from error
    return _rows_from_text_body(str(file_path), body)


def _rows_from_text_body(source_uri: str, body: str) -> list[JsonlRow]:
    """Split a JSONL body into rows.

    Args:
        source_uri: File path or object URI for row origins.
        body: Raw JSONL text.

    Returns:
        Rows for every non-blank line.
    """
    rows: list[JsonlRow] = []
    for line_number, line in enumerate(body.splitlines(), 1):
        if not line.strip():
            continue
        rows.append(_parse_jsonl_line(f"{source_uri}:{line_number}", line))
    return rows


def _parse_jsonl_line(row_uri: str, line: str) -> JsonlRow:
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        return JsonlRow(source_uri=row_uri, payload=None, error=f"invalid JSON: {error.msg}")
    if not isinstance(payload, dict):
        return JsonlRow(source_uri=row_uri, payload=None, error="expected a JSON object")
    return JsonlRow(source_uri=row_uri, payload=payload)


def _read_s3_rows(source_uri: str, config: ChronicleConfig) -> list[JsonlRow]:
    """Read rows from S3 objects under a prefix.

    Args:
        source_uri: S3 prefix URI.
        config: Runtime configuration for region/profile.

    Returns:
        Rows loaded from every JSONL object.
    """
    location = parse_s3_uri(source_uri)
    s3_client = _create_s3_client(config)
    object_keys = _list_s3_keys(s3_client, location)
    return _download_s3_rows(s3_client, location.bucket, object_keys)


def _create_s3_client(config: ChronicleConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config containing optional profile/region.

    Returns:
        Boto3 S3 client.

    Raises:
        ChronicleDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise ChronicleDependencyError(
            "S3 support requires boto3, but it is not installed. "
            "Install boto3 to read s3:// sources."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


def _list_s3_keys(s3_client: Any, location: S3Location) -> list[str]:
    """List JSONL object keys under an S3 prefix."""
    paginator = s3_client.get_paginator("list_objects_v2")
    pages = paginator.paginate(Bucket=location.bucket, Prefix=location.prefix)
    keys: list[str] = []
    for page in pages:
        for obj in page.get("Contents", []):
            key = obj["Key"]
            if _is_supported_key(key):
                keys.append(key)
    return sorted(keys)


def _download_s3_rows(
    s3_client: Any,
    bucket: str,
    object_keys: Iterable[str],
) -> list[JsonlRow]:
    rows: list[JsonlRow] = []
    for key in object_keys:
        body = s3_client.get_object(Bucket=bucket, Key=key)["Body"].read().decode("utf-8")
        rows.extend(_rows_from_text_body(f"s3://{bucket}/{key}", body))
    return rows


def _is_supported_key(key: str) -> bool:
    return key.lower().endswith(SUPPORTED_INPUT_EXTENSIONS)
