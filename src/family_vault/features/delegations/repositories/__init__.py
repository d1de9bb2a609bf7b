"""Delegation storage adapters."""

from .delegation_repository import (
    DatabaseDelegationRequestRepository,
    DatabasePermissionGrantRepository,
    DatabaseDelegationStore,
)
from .memory_repository import (
    InMemoryDelegationRequestRepository,
    InMemoryPermissionGrantRepository,
    InMemoryDelegationStore,
)

__all__ = [
    "DatabaseDelegationRequestRepository",
    "DatabasePermissionGrantRepository",
    "DatabaseDelegationStore",
    "InMemoryDelegationRequestRepository",
    "InMemoryPermissionGrantRepository",
    "InMemoryDelegationStore",
]
