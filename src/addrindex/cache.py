"""
Short-lived in-memory cache for scripthash query results.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class MemoryCache:
    """
    TTL cache keyed by (operation, key).

    Expired entries are dropped when read; there is no background sweep.
    Operations never await, so a single instance can be shared by every
    coroutine on the event loop.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], CacheEntry] = {}

    def get(self, op: str, key: str) -> Any | None:
        entry = self._entries.get((op, key))
        if entry is None:
            return None
        if entry.is_expired(time.monotonic()):
            del self._entries[(op, key)]
            return None
        return entry.value

    def set(self, op: str, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[(op, key)] = CacheEntry(
            value=value, expires_at=time.monotonic() + ttl_seconds
        )

    def delete(self, op: str, key: str) -> None:
        self._entries.pop((op, key), None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
