"""Delegation REST models."""

from .requests import CreateDelegationRequest, ApproveDelegationRequest, ReasonRequest
from .responses import (
    DelegationRequestResponse,
    PermissionGrantResponse,
    DelegationApprovalResponse,
    DelegationRequestListResponse,
    PermissionSummaryResponse,
    AccessCheckResponse,
    DashboardCountsResponse,
    MemberStatisticsResponse,
    AuditEntryResponse,
)

__all__ = [
    "CreateDelegationRequest",
    "ApproveDelegationRequest",
    "ReasonRequest",
    "DelegationRequestResponse",
    "PermissionGrantResponse",
    "DelegationApprovalResponse",
    "DelegationRequestListResponse",
    "PermissionSummaryResponse",
    "AccessCheckResponse",
    "DashboardCountsResponse",
    "MemberStatisticsResponse",
    "AuditEntryResponse",
]
