"""Core module: exception hierarchy, result contract and actor context."""

from .shared import ErrorKind, Result, ResultUnwrapError, ActorContext, SYSTEM_ACTOR_ID
from .exceptions import FamilyVaultError, error_kind_for, get_http_status_code

__all__ = [
    "ErrorKind",
    "Result",
    "ResultUnwrapError",
    "ActorContext",
    "SYSTEM_ACTOR_ID",
    "FamilyVaultError",
    "error_kind_for",
    "get_http_status_code",
]
