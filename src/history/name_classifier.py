"""Bot-name classification with an instance-owned LRU cache.

Names are matched against a case-insensitive ``...bot`` pattern. Results
are memoized in a fixed-capacity cache that evicts the least recently
used name once full.
"""

from __future__ import annotations

import re
from collections import OrderedDict

from core.constants import BOT_NAME_PATTERN, DEFAULT_BOT_NAME_CACHE_SIZE
from core.errors import ChronicleConfigError


class LruCache:
    """Fixed-capacity mapping evicting the least recently used key."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ChronicleConfigError(
                f"Invalid LRU cache capacity {capacity}: expected at least 1."
            )
        self._capacity = capacity
        self._entries: OrderedDict[str, bool] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: str) -> bool | None:
        """Return the cached value and mark the key as recently used."""
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def put(self, key: str, value: bool) -> None:
        """Store a value, evicting the oldest key when over capacity."""
        self._entries[key] = value
        self._entries.move_to_end(key)
        if len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


class BotNameClassifier:
    """Classify entity names that look like automated accounts."""

    def __init__(self, cache: LruCache | None = None) -> None:
        self._cache = cache if cache is not None else LruCache(DEFAULT_BOT_NAME_CACHE_SIZE)
        self._pattern = re.compile(BOT_NAME_PATTERN)

    def is_bot_by_name(self, name: str) -> bool:
        """Return whether a name matches the bot naming convention.

        Args:
            name: Entity name to classify.

        Returns:
            ``True`` for names such as ``ExampleBot`` or ``Some_bot_2``.
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached
        result = self._pattern.match(name) is not None
        self._cache.put(name, result)
        return result
