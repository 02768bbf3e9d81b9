"""Unit tests for event row parsing."""

from __future__ import annotations

from datetime import datetime, timezone

from core.types import EventType, IdentityKey
from history.statistics import StatsAccumulator
from ingest.event_records import build_event, split_parsing_errors
from ingest.input_reader import JsonlRow


def _row(**payload: object) -> JsonlRow:
    return JsonlRow(source_uri="events.jsonl:1", payload=dict(payload))


def test_build_event_parses_rename_row() -> None:
    """A complete rename row should produce a parsed event."""
    event = build_event(
        _row(
            domain="enwiki",
            event_type="RENAME",
            timestamp="20240102030405",
            old_name="Alpha",
            new_name="Bravo",
            caused_by_actor_id=12,
            new_groups="sysop, bot",
        )
    )

    assert event.parsing_errors == ()
    assert event.event_type is EventType.RENAME
    assert event.timestamp == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert event.old_key == IdentityKey(domain="enwiki", name="Alpha")
    assert event.new_key == IdentityKey(domain="enwiki", name="Bravo")
    assert event.new_groups == ("sysop", "bot")


def test_build_event_defaults_old_name_for_non_renames() -> None:
    """Non-identity events should use the new name as their old key."""
    event = build_event(
        _row(
            domain="enwiki",
            event_type="alterblocks",
            timestamp="2024-01-02T00:00:00Z",
            new_name="Alpha",
            new_blocks=["edit"],
            block_expiration="infinity",
        )
    )

    assert event.old_key == event.new_key
    assert event.block_expiration == "infinity"


def test_build_event_collects_field_errors() -> None:
    """Malformed fields should become parsing errors instead of exceptions."""
    event = build_event(_row(domain="enwiki", event_type="teleport", timestamp="yesterday"))

    assert event.event_type is None
    assert event.timestamp is None
    assert len(event.parsing_errors) == 3


def test_build_event_requires_old_name_for_rename() -> None:
    """A rename row without its old name should be a parsing error."""
    event = build_event(
        _row(domain="enwiki", event_type="rename", timestamp="20240102030405", new_name="Bravo")
    )

    assert event.parsing_errors == ("missing field 'old_name'",)


def test_build_event_wraps_invalid_json_row() -> None:
    """A row that failed JSON decoding should carry its decode error."""
    event = build_event(JsonlRow(source_uri="events.jsonl:3", payload=None, error="invalid JSON"))

    assert event.parsing_errors == ("invalid JSON",)
    assert event.source_uri == "events.jsonl:3"


def test_split_parsing_errors_counts_both_outcomes() -> None:
    """Parsed and rejected events should be separated and counted per domain."""
    parsed = build_event(
        _row(domain="enwiki", event_type="delete", timestamp="20240102030405", new_name="Alpha")
    )
    rejected = build_event(_row(domain="enwiki", event_type="delete"))
    stats = StatsAccumulator()

    ok_events, error_events = split_parsing_errors([parsed, rejected], stats)

    assert ok_events == [parsed] and error_events == [rejected]
    assert stats.as_dict() == {
        "enwiki.history.eventsParsing.KO": 1,
        "enwiki.history.eventsParsing.OK": 1,
    }
