from .delegation import (
    DelegationKey,
    DelegationRequest,
    PermissionGrant,
    DelegationApproval,
    PermissionSummary,
)
from .protocols import DelegationRequestRepository, PermissionGrantRepository, DelegationStore

__all__ = [
    "DelegationKey",
    "DelegationRequest",
    "PermissionGrant",
    "DelegationApproval",
    "PermissionSummary",
    "DelegationRequestRepository",
    "PermissionGrantRepository",
    "DelegationStore",
]
