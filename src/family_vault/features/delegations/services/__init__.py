from .policy import can_act, DelegationPolicy
from .authorization_service import DelegationAuthorizationService, engine_operation

__all__ = [
    "can_act",
    "DelegationPolicy",
    "DelegationAuthorizationService",
    "engine_operation",
]
