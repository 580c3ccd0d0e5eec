from __future__ import annotations

import asyncio
import inspect
import threading
import time
import typing as t
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass

from yeet_cache.monitoring.metrics import cache_compute_seconds, cache_requests_total

from .lru_cache import LRUCache

T = t.TypeVar("T")
Compute = t.Callable[[], t.Union[T, t.Awaitable[T]]]


async def _call(compute: Compute) -> t.Any:
    result = compute()
    if inspect.isawaitable(result):
        result = await result
    return result


async def get_or_set(
    cache: LRUCache,
    key: str,
    compute: Compute,
    ttl_seconds: t.Optional[float] = None,
    *,
    store_if: t.Optional[t.Callable[[], bool]] = None,
) -> t.Any:
    """Return the cached value for ``key`` or compute, store and return it.

    ``compute`` may be a plain or an async callable. ``None`` results are
    returned but never stored, and an exception from ``compute`` propagates
    with nothing written to the cache. When given, ``store_if`` is asked after
    ``compute`` returns whether the value may still be stored.
    """
    cached = cache.get(key)
    if cached is not None:
        cache_requests_total.inc(cache=cache.name, result="hit")
        return cached
    cache_requests_total.inc(cache=cache.name, result="miss")

    started = time.perf_counter()
    value = await _call(compute)
    cache_compute_seconds.observe(time.perf_counter() - started, cache=cache.name)
    if value is not None and (store_if is None or store_if()):
        cache.set(key, value, ttl_seconds)
    return value


class SingleFlight:
    """Collapse concurrent calls for the same key into one in-flight call.

    The first caller runs ``fn``; callers arriving while it is pending await
    the same result (or exception). The slot is released once ``fn`` settles.
    If the running caller is cancelled, the callers waiting on it are not:
    they retry, and one of them runs its own ``fn``.
    """

    def __init__(self) -> None:
        self._inflight: t.Dict[str, "asyncio.Future[t.Any]"] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)

    def forget(self, key: str) -> None:
        """Let the next caller for ``key`` start a fresh call.

        Callers already waiting keep the result of the call they joined.
        """
        self._inflight.pop(key, None)

    async def do(self, key: str, fn: t.Callable[[], t.Awaitable[T]]) -> T:
        while True:
            pending = self._inflight.get(key)
            if pending is None:
                break
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                # the running caller went away; take over or join whoever did

        future: "asyncio.Future[t.Any]" = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await fn()
        except asyncio.CancelledError:
            self._release(key, future)
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # the leader re-raises; waiters, if any, get the same exception
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._release(key, future)

    def _release(self, key: str, future: "asyncio.Future[t.Any]") -> None:
        if self._inflight.get(key) is future:
            del self._inflight[key]


@dataclass(eq=False)
class TagWatch:
    """Marks a computation whose result must not be stored once a watched tag is invalidated."""

    tags: t.Tuple[str, ...]
    flight_key: str = ""
    stale: bool = False


class TagIndex:
    """Maps a tag to the ``(cache name, key)`` pairs stored under it.

    A reverse map from each pair to its tags lets ``discard`` forget an entry
    in one step when its cache evicts, expires or deletes it, so the index
    never outgrows the caches it describes.
    """

    def __init__(self) -> None:
        self._tags: t.Dict[str, t.Set[t.Tuple[str, str]]] = defaultdict(set)
        self._entries: t.Dict[t.Tuple[str, str], t.Set[str]] = defaultdict(set)
        self._watches: t.Dict[str, t.Set[TagWatch]] = defaultdict(set)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def add(self, tag: str, cache_name: str, key: str) -> None:
        member = (cache_name, key)
        with self._lock:
            self._tags[tag].add(member)
            self._entries[member].add(tag)

    def discard(self, cache_name: str, key: str) -> None:
        member = (cache_name, key)
        with self._lock:
            for tag in self._entries.pop(member, ()):
                members = self._tags.get(tag)
                if members is None:
                    continue
                members.discard(member)
                if not members:
                    del self._tags[tag]

    def pop(self, tag: str) -> t.Set[t.Tuple[str, str]]:
        """Remove ``tag`` and return its members; running watches on it go stale."""
        with self._lock:
            for watch in self._watches.get(tag, ()):
                watch.stale = True
            members = self._tags.pop(tag, set())
            for member in members:
                tags = self._entries.get(member)
                if tags is None:
                    continue
                tags.discard(tag)
                if not tags:
                    del self._entries[member]
            return members

    def members(self, tag: str) -> t.Set[t.Tuple[str, str]]:
        with self._lock:
            return set(self._tags.get(tag, ()))

    def tags(self) -> t.List[str]:
        with self._lock:
            return list(self._tags)

    def watching(self, tag: str) -> t.List[TagWatch]:
        with self._lock:
            return list(self._watches.get(tag, ()))

    @contextmanager
    def watch(self, tags: t.Iterable[str], flight_key: str = "") -> t.Iterator[TagWatch]:
        watch = TagWatch(tuple(tags), flight_key)
        with self._lock:
            for tag in watch.tags:
                self._watches[tag].add(watch)
        try:
            yield watch
        finally:
            with self._lock:
                for tag in watch.tags:
                    watches = self._watches.get(tag)
                    if watches is None:
                        continue
                    watches.discard(watch)
                    if not watches:
                        del self._watches[tag]

    def clear(self) -> None:
        with self._lock:
            self._tags.clear()
            self._entries.clear()
