"""Protocol interfaces for the dashboard cache."""

from abc import abstractmethod
from typing import Any, Dict, Iterable, Optional, Protocol, runtime_checkable


@runtime_checkable
class DashboardCache(Protocol):
    """Key/value cache of serialized dashboard views.

    Each key carries a generation that ``delete_many`` increments. Readers
    take the generation before computing a view and write it back with
    ``set_if_generation``, which refuses once the key has been invalidated.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def get_generation(self, key: str) -> Optional[int]:
        """Current generation of ``key``; ``None`` when it cannot be read."""
        ...

    @abstractmethod
    async def set_if_generation(self, key: str, value: Dict[str, Any], ttl: int,
                                generation: Optional[int]) -> bool:
        """Store ``value`` only if ``key`` is still at ``generation``."""
        ...

    @abstractmethod
    async def delete_many(self, keys: Iterable[str]) -> int:
        """Delete keys, bump their generations and return how many existed."""
        ...
