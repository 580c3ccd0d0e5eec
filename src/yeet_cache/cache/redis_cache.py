from __future__ import annotations

import json
import typing as t
from collections import Counter

from redis.asyncio import Redis


class RedisCache:
    """Shared second-tier cache in Redis.

    - Values are stored as JSON strings at key: `{prefix}:{key}`
    - Expiry uses `SET ... PX` so Redis drops stale entries itself
    - Pattern clears walk the keyspace with `SCAN MATCH`, never `KEYS`
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        prefix: str = "yeet",
        default_ttl_seconds: float = 300.0,
        client: t.Optional[Redis] = None,
    ) -> None:
        self._url = url
        self._prefix = prefix.rstrip(":")
        self._ttl = default_ttl_seconds
        self._redis = client if client is not None else Redis.from_url(url, decode_responses=True)

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def _strip(self, full_key: t.Union[str, bytes]) -> str:
        if isinstance(full_key, (bytes, bytearray)):
            full_key = full_key.decode()
        return full_key[len(self._prefix) + 1 :]

    async def get(self, key: str) -> t.Optional[t.Any]:
        raw = await self._redis.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: t.Any, ttl_seconds: t.Optional[float] = None) -> bool:
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        payload = json.dumps(value, default=str)
        ok = await self._redis.set(self._key(key), payload, px=max(1, int(ttl * 1000)))
        return bool(ok)

    async def delete(self, key: str) -> bool:
        removed = await self._redis.delete(self._key(key))
        return bool(removed)

    async def keys(self, pattern: str = "*") -> t.List[str]:
        found: t.List[str] = []
        async for full_key in self._redis.scan_iter(match=self._key(pattern), count=500):
            found.append(self._strip(full_key))
        return found

    async def clear_pattern(self, pattern: str) -> int:
        batch: t.List[str] = []
        removed = 0
        async for full_key in self._redis.scan_iter(match=self._key(pattern), count=500):
            batch.append(full_key)
            if len(batch) >= 500:
                removed += await self._redis.delete(*batch)
                batch = []
        if batch:
            removed += await self._redis.delete(*batch)
        return int(removed)

    async def get_stats(self) -> t.Dict[str, t.Any]:
        names = await self.keys()
        by_type = Counter(name.split(":", 1)[0] for name in names)
        return {"total_keys": len(names), "keys_by_type": dict(by_type)}

    async def ping(self) -> bool:
        try:
            pong = await self._redis.ping()
            return bool(pong)
        except Exception:
            return False

    async def close(self) -> None:
        await self._redis.aclose()
