"""Core constants used across Chronicle modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_WORKER_COUNT = 1
DEFAULT_BOT_NAME_CACHE_SIZE = 10_000
SUPPORTED_INPUT_EXTENSIONS = (".jsonl",)
INDEFINITE_TIMESTAMP_VALUES = ("infinity", "indefinite", "infinite", "never")
MEDIAWIKI_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
BOT_NAME_PATTERN = r"(?i)^.*bot([^a-z].*$|$)"
HISTORY_FILE_NAME = "history.parquet"
ERRORS_FILE_NAME = "errors.jsonl"
STATS_FILE_NAME = "stats.json"
ERROR_TYPE_PARSING = "parsing"
ERROR_TYPE_MATCHING = "matching"
INFERRED_FROM_UNCLOSED = "unclosed"
INFERRED_FROM_CONFLICT = "conflict"
INFERRED_FROM_UNBLOCK = "unblock"
METRIC_EVENTS_MATCHING_OK = "history.eventsMatching.OK"
METRIC_EVENTS_MATCHING_KO = "history.eventsMatching.KO"
METRIC_EVENTS_PARSING_OK = "history.eventsParsing.OK"
METRIC_EVENTS_PARSING_KO = "history.eventsParsing.KO"
METRIC_INITIAL_STATES = "history.initialStates"
METRIC_WRITTEN_ROWS = "history.writtenRows"
METRIC_SUBGRAPH_PARTITIONS = "history.subgraphPartitions.count"
METRIC_DUPLICATE_STATE_KEYS = "history.statesDuplicateKey"
METRIC_SYNTHESIZED_STATES_PREFIX = "history.statesSynthesized"
