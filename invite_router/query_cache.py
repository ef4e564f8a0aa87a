from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Any

from .path_search import CacheKey, TrackerPath
from .settings import settings

CachedSearch = tuple[tuple[TrackerPath, ...], dict[str, Any]]


@dataclass
class _QueryCacheEntry:
    inserted_at: float
    paths: tuple[TrackerPath, ...]
    stats: dict[str, Any]


class QueryCacheStore:
    """TTL + LRU store for ranked search results.

    Paths are frozen, so entries are shared as-is; only the stats dict is copied.
    """

    def __init__(self, *, ttl_s: int, max_entries: int) -> None:
        self._ttl_s = max(1, int(ttl_s))
        self._max_entries = max(1, int(max_entries))
        self._lock = Lock()
        self._items: OrderedDict[CacheKey, _QueryCacheEntry] = OrderedDict()

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _is_expired(self, entry: _QueryCacheEntry) -> bool:
        return (time.monotonic() - entry.inserted_at) > self._ttl_s

    def get(self, key: CacheKey) -> CachedSearch | None:
        with self._lock:
            entry = self._items.get(key)
            if entry is None or self._is_expired(entry):
                if entry is not None:
                    self._items.pop(key, None)
                self._misses += 1
                return None
            self._items.move_to_end(key)
            self._hits += 1
            return entry.paths, dict(entry.stats)

    def set(self, key: CacheKey, paths: tuple[TrackerPath, ...], stats: dict[str, Any]) -> None:
        entry = _QueryCacheEntry(inserted_at=time.monotonic(), paths=tuple(paths), stats=dict(stats))
        with self._lock:
            self._items[key] = entry
            self._items.move_to_end(key)
            while len(self._items) > self._max_entries:
                self._items.popitem(last=False)
                self._evictions += 1

    def clear(self) -> int:
        with self._lock:
            cleared = len(self._items)
            self._items.clear()
            return cleared

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {
                "size": len(self._items),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "ttl_s": self._ttl_s,
                "max_entries": self._max_entries,
            }


QUERY_CACHE = QueryCacheStore(
    ttl_s=settings.query_cache_ttl_s,
    max_entries=settings.query_cache_max_entries,
)


def get_cached_search(key: CacheKey) -> CachedSearch | None:
    return QUERY_CACHE.get(key)


def set_cached_search(key: CacheKey, paths: tuple[TrackerPath, ...], stats: dict[str, Any]) -> None:
    QUERY_CACHE.set(key, paths, stats)


def clear_query_cache() -> int:
    return QUERY_CACHE.clear()


def query_cache_stats() -> dict[str, int]:
    return QUERY_CACHE.snapshot()
