"""Chronicle exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class ChronicleError(Exception):
    """Base exception for all Chronicle failures."""


class ChronicleConfigError(ChronicleError):
    """Raised for invalid runtime configuration."""


class ChronicleIngestError(ChronicleError):
    """Raised for unreadable sources and malformed state rows."""


class ChroniclePartitionError(ChronicleError):
    """Raised when a partition set breaks identity closure or exhaustiveness."""


class ChronicleReconstructionError(ChronicleError):
    """Raised when reconstruction preconditions are violated."""


class ChronicleStoreError(ChronicleError):
    """Raised for history output persistence failures."""


class ChronicleDependencyError(ChronicleError):
    """Raised when an optional runtime dependency is missing."""


class ChronicleRunSpecError(ChronicleError):
    """Raised for invalid or unsupported run-spec configuration."""
