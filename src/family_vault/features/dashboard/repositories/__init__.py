from .memory_cache import MemoryDashboardCache
from .redis_cache import RedisDashboardCache

__all__ = ["MemoryDashboardCache", "RedisDashboardCache"]
