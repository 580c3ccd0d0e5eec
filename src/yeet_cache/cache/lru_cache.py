from __future__ import annotations

import threading
import time
import typing as t
from collections import OrderedDict
from dataclasses import asdict, dataclass

Clock = t.Callable[[], float]
RemovalListener = t.Callable[[str], None]


@dataclass
class CacheEntry:
    value: t.Any
    expires_at: float


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return round(self.hits / total * 100, 2)


class LRUCache:
    """In-process LRU + TTL cache used for every named instance.

    Entries live in an ``OrderedDict`` ordered by recency (most recently used
    last), so the eviction candidate is always the first item. Expiry is lazy:
    reads ignore expired entries and writes sweep them before inserting.

    Listeners registered with ``add_listener`` are told the key of every entry
    that leaves the cache (eviction, expiry, delete or clear), so indexes kept
    beside the cache can stay in step with it.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float = 300.0,
        *,
        name: str = "default",
        clock: t.Optional[Clock] = None,
    ) -> None:
        self.name = name
        self._store: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._max_size = max(1, int(max_size))
        self._ttl = float(ttl_seconds)
        self._clock: Clock = clock or time.time
        self._stats = CacheStats()
        self._lock = threading.RLock()
        self._listeners: t.List[RemovalListener] = []

    @property
    def capacity(self) -> int:
        return self._max_size

    @property
    def default_ttl(self) -> float:
        return self._ttl

    def add_listener(self, listener: RemovalListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def _removed(self, key: str) -> None:
        for listener in self._listeners:
            listener(key)

    def _is_expired(self, entry: CacheEntry, now: t.Optional[float] = None) -> bool:
        if now is None:
            now = self._clock()
        return now > entry.expires_at

    def get(self, key: str) -> t.Optional[t.Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            if self._is_expired(entry):
                del self._store[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                self._removed(key)
                return None
            # mark as recently used
            self._store.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def set(self, key: str, value: t.Any, ttl_seconds: t.Optional[float] = None) -> bool:
        ttl = self._ttl if ttl_seconds is None else float(ttl_seconds)
        with self._lock:
            self._purge_expired_locked()
            if key not in self._store and len(self._store) >= self._max_size:
                # evict LRU
                evicted, _ = self._store.popitem(last=False)
                self._stats.evictions += 1
                self._removed(evicted)
            self._store[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
            self._store.move_to_end(key)
            self._stats.sets += 1
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            if self._store.pop(key, None) is None:
                return False
            self._stats.deletes += 1
            self._removed(key)
            return True

    def has(self, key: str) -> bool:
        with self._lock:
            entry = self._store.get(key)
            return entry is not None and not self._is_expired(entry)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def keys(self) -> t.List[str]:
        with self._lock:
            self._purge_expired_locked()
            return list(self._store.keys())

    def size(self) -> int:
        with self._lock:
            self._purge_expired_locked()
            return len(self._store)

    def __len__(self) -> int:
        return self.size()

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            return self._purge_expired_locked()

    def _purge_expired_locked(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._store.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._store[key]
            self._removed(key)
        self._stats.expirations += len(expired)
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            removed = list(self._store)
            self._store.clear()
            self._stats = CacheStats()
            for key in removed:
                self._removed(key)

    def get_stats(self) -> t.Dict[str, t.Any]:
        with self._lock:
            self._purge_expired_locked()
            stats: t.Dict[str, t.Any] = asdict(self._stats)
            stats["hit_rate"] = self._stats.hit_rate
            stats["size"] = len(self._store)
            stats["capacity"] = self._max_size
            return stats

    # Lifecycle parity with external cache clients
    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.clear()
