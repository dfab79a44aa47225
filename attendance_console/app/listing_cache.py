from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")

COLLECTION_TTL_SECONDS = 20.0


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


def cache_key(module: str, params: dict[str, Any] | None = None) -> str:
    return f"{module}:{json.dumps(params or {}, sort_keys=True, default=str)}"


class ListingCache:
    """In-memory TTL cache for collection payloads, keyed per module and query."""

    def __init__(self, ttl_seconds: float = COLLECTION_TTL_SECONDS, now: Callable[[], float] | None = None) -> None:
        self.ttl_seconds = max(1.0, ttl_seconds)
        self._now = now or time.monotonic
        self._entries: dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None or entry.expires_at <= self._now():
            self._entries.pop(key, None)
            self.misses += 1
            return None
        self.hits += 1
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._now() + self.ttl_seconds)

    def get_or_load(self, key: str, loader: Callable[[], T], force: bool = False) -> T:
        if not force:
            cached = self.get(key)
            if cached is not None:
                return cached
        value = loader()
        self.set(key, value)
        return value

    def invalidate_module(self, module: str) -> None:
        prefix = f"{module}:"
        for key in [key for key in self._entries if key.startswith(prefix)]:
            self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
