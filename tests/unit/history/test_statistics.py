"""Unit tests for statistics accumulation."""

from __future__ import annotations

from history.statistics import StatsAccumulator, domain_metric, merge_into_sink


def test_merge_adds_counters_regardless_of_order() -> None:
    """Merging partition counters should be commutative."""
    first = {"wiki.history.eventsMatching.OK": 2, "wiki.history.writtenRows": 1}
    second = {"wiki.history.eventsMatching.OK": 3}
    forward = StatsAccumulator()
    backward = StatsAccumulator()

    forward.merge(first)
    forward.merge(second)
    backward.merge(second)
    backward.merge(first)

    assert forward.as_dict() == backward.as_dict() == {
        "wiki.history.eventsMatching.OK": 5,
        "wiki.history.writtenRows": 1,
    }


def test_add_domain_prefixes_metric_with_domain() -> None:
    """Per-domain counters should be keyed by domain then metric."""
    stats = StatsAccumulator()

    stats.add_domain("enwiki", "history.initialStates", 4)

    assert stats.get(domain_metric("enwiki", "history.initialStates")) == 4


def test_merge_into_sink_forwards_every_counter() -> None:
    """Any sink should receive each counter through add."""
    received: list[tuple[str, int]] = []

    class _ListSink:
        def add(self, key: str, delta: int) -> None:
            received.append((key, delta))

    merge_into_sink(_ListSink(), {"a": 1, "b": 2})

    assert received == [("a", 1), ("b", 2)]
