"""Delegations feature: request lifecycle, grants and access checks.

Routers and REST models are imported from their subpackages directly.
"""

from .entities import (
    DelegationKey,
    DelegationRequest,
    PermissionGrant,
    DelegationApproval,
    DelegationRequestRepository,
    PermissionGrantRepository,
    DelegationStore,
)
from .repositories import DatabaseDelegationStore, InMemoryDelegationStore
from .services import can_act, DelegationPolicy, DelegationAuthorizationService, engine_operation
from .utils import DelegationValidationRules

__all__ = [
    "DelegationKey",
    "DelegationRequest",
    "PermissionGrant",
    "DelegationApproval",
    "DelegationRequestRepository",
    "PermissionGrantRepository",
    "DelegationStore",
    "DatabaseDelegationStore",
    "InMemoryDelegationStore",
    "can_act",
    "DelegationPolicy",
    "DelegationAuthorizationService",
    "engine_operation",
    "DelegationValidationRules",
]
