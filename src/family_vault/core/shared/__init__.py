"""Shared core contracts: results and actor context."""

from .result import ErrorKind, Result, ResultUnwrapError
from .context import ActorContext, SYSTEM_ACTOR_ID

__all__ = [
    "ErrorKind",
    "Result",
    "ResultUnwrapError",
    "ActorContext",
    "SYSTEM_ACTOR_ID",
]
