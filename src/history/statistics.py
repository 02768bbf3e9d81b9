"""Statistics accumulation for history reconstruction.

Counters are keyed by ``<domain>.<metric>`` and merged by addition, so
partition results can be combined in any order.
"""

from __future__ import annotations

from collections import Counter
from typing import Mapping, Protocol


class StatsSink(Protocol):
    """Write-only statistics collaborator."""

    def add(self, key: str, delta: int) -> None: ...


class StatsAccumulator:
    """Additive counter map implementing ``StatsSink``."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def add(self, key: str, delta: int) -> None:
        """Increment one counter.

        Args:
            key: Counter key.
            delta: Amount to add.
        """
        self._counts[key] += delta

    def add_domain(self, domain: str, metric: str, delta: int = 1) -> None:
        """Increment a per-domain counter."""
        self.add(domain_metric(domain, metric), delta)

    def merge(self, counts: Mapping[str, int]) -> None:
        """Add every counter of another map into this accumulator."""
        for key, delta in counts.items():
            self._counts[key] += delta

    def get(self, key: str) -> int:
        """Return the current value of one counter."""
        return self._counts.get(key, 0)

    def as_dict(self) -> dict[str, int]:
        """Return a sorted plain-dict copy of the counters."""
        return dict(sorted(self._counts.items()))


def domain_metric(domain: str, metric: str) -> str:
    """Build a per-domain counter key."""
    return f"{domain}.{metric}"


def merge_into_sink(sink: StatsSink, counts: Mapping[str, int]) -> None:
    """Forward counters into any sink implementation."""
    for key, delta in counts.items():
        sink.add(key, delta)
