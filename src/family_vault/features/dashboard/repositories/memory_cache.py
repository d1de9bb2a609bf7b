"""In-memory dashboard cache with per-entry TTL and key generations."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass
class MemoryCacheEntry:
    value: Dict[str, Any]
    expires_at: float

    @property
    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class MemoryDashboardCache:
    """Dictionary-backed dashboard cache."""

    def __init__(self):
        self._entries: Dict[str, MemoryCacheEntry] = {}
        self._generations: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired:
                del self._entries[key]
                return None
            return dict(entry.value)

    async def get_generation(self, key: str) -> Optional[int]:
        async with self._lock:
            return self._generations.get(key, 0)

    async def set_if_generation(self, key: str, value: Dict[str, Any], ttl: int,
                                generation: Optional[int]) -> bool:
        async with self._lock:
            if generation is None or self._generations.get(key, 0) != generation:
                logger.debug(f"Skipping cache write for {key}: invalidated while computing")
                return False
            self._entries[key] = MemoryCacheEntry(dict(value), time.monotonic() + ttl)
            return True

    async def delete_many(self, keys: Iterable[str]) -> int:
        removed = 0
        async with self._lock:
            for key in keys:
                self._generations[key] = self._generations.get(key, 0) + 1
                if self._entries.pop(key, None) is not None:
                    removed += 1
        return removed
