"""Dashboard feature: cached, role-scoped views of delegation state."""

from .entities import DelegationCounts, MemberStatistics, DashboardCache
from .repositories import MemoryDashboardCache, RedisDashboardCache
from .services import DashboardService

__all__ = [
    "DelegationCounts",
    "MemberStatistics",
    "DashboardCache",
    "MemoryDashboardCache",
    "RedisDashboardCache",
    "DashboardService",
]
