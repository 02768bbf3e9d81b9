"""Pytest configuration and shared fixtures for Chronicle tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from core.config import ChronicleConfig


def pytest_sessionstart() -> None:
    """Make the src layout importable without an installed package."""
    src_path = Path(__file__).resolve().parent.parent / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def fixed_config() -> ChronicleConfig:
    """Single-worker config with a pinned processing time."""
    from core.config import ChronicleConfig

    return ChronicleConfig(
        worker_count=1,
        present_timestamp=datetime(2024, 6, 1, tzinfo=timezone.utc),
        bot_name_cache_size=16,
        s3_region=None,
        s3_profile=None,
    )
