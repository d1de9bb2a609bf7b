"""Redis dashboard cache adapter.

Values are stored as JSON with a TTL. Every key has a generation counter
that invalidation increments; a computed view is only written back when
its generation is unchanged, checked and written in one Lua call. Redis
failures are logged and treated as cache misses; the dashboard then reads
from the store.
"""

import json
import logging
from typing import Any, Dict, Iterable, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# KEYS[1] value key, KEYS[2] generation key; ARGV value, ttl, generation
SET_IF_GENERATION_SCRIPT = """
local current = redis.call('GET', KEYS[2]) or '0'
if current ~= ARGV[3] then
    return 0
end
redis.call('SET', KEYS[1], ARGV[1], 'EX', ARGV[2])
return 1
"""


class RedisDashboardCache:
    """Dashboard cache backed by ``redis.asyncio``."""

    def __init__(self, client: redis.Redis, key_prefix: str = "family_vault:"):
        self._client = client
        self._prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "family_vault:") -> "RedisDashboardCache":
        return cls(redis.from_url(url, decode_responses=True), key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _generation_key(self, key: str) -> str:
        return f"{self._prefix}generation:{key}"

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self._client.get(self._key(key))
        except RedisError as e:
            logger.warning(f"Redis get failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

    async def get_generation(self, key: str) -> Optional[int]:
        try:
            raw = await self._client.get(self._generation_key(key))
        except RedisError as e:
            logger.warning(f"Redis generation read failed for {key}: {e}")
            return None
        return int(raw) if raw is not None else 0

    async def set_if_generation(self, key: str, value: Dict[str, Any], ttl: int,
                                generation: Optional[int]) -> bool:
        if generation is None:
            return False
        try:
            written = await self._client.eval(
                SET_IF_GENERATION_SCRIPT, 2,
                self._key(key), self._generation_key(key),
                json.dumps(value), ttl, generation,
            )
        except RedisError as e:
            logger.warning(f"Redis set failed for {key}: {e}")
            return False
        if not written:
            logger.debug(f"Skipping cache write for {key}: invalidated while computing")
        return bool(written)

    async def delete_many(self, keys: Iterable[str]) -> int:
        keys = list(keys)
        if not keys:
            return 0
        try:
            # Bump generations first so in-flight reads cannot write back.
            for key in keys:
                await self._client.incr(self._generation_key(key))
            return await self._client.delete(*[self._key(key) for key in keys])
        except RedisError as e:
            logger.warning(f"Redis delete failed for {len(keys)} keys: {e}")
            return 0

    async def close(self) -> None:
        await self._client.aclose()
