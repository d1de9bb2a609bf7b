from .dashboard import DelegationCounts, MemberStatistics
from .protocols import DashboardCache

__all__ = ["DelegationCounts", "MemberStatistics", "DashboardCache"]
