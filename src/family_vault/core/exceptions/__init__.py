"""Exceptions module for family-vault.

This module provides the complete exception hierarchy, organized by
domain concerns and storage concerns, plus the error-kind mapping used
at the engine boundary.
"""

from .base import FamilyVaultError

from .domain import (
    ConfigurationError,
    ValidationError,
    EntityNotFoundError,
    MemberNotFoundError,
    RequestNotFoundError,
    GrantNotFoundError,
    AuthorizationError,
    PermissionDeniedError,
    DelegationStateError,
    DuplicateDelegationError,
    AlreadyProcessedError,
    GrantExpiredError,
)

from .database import (
    DatabaseError,
    ConnectionError,
    TransactionError,
    EntityAlreadyExistsError,
)

from .error_mapping import (
    ERROR_KIND_MAP,
    HTTP_STATUS_MAP,
    error_kind_for,
    get_http_status_code,
)

__all__ = [
    # Base
    "FamilyVaultError",

    # Domain
    "ConfigurationError",
    "ValidationError",
    "EntityNotFoundError",
    "MemberNotFoundError",
    "RequestNotFoundError",
    "GrantNotFoundError",
    "AuthorizationError",
    "PermissionDeniedError",
    "DelegationStateError",
    "DuplicateDelegationError",
    "AlreadyProcessedError",
    "GrantExpiredError",

    # Storage
    "DatabaseError",
    "ConnectionError",
    "TransactionError",
    "EntityAlreadyExistsError",

    # Mapping
    "ERROR_KIND_MAP",
    "HTTP_STATUS_MAP",
    "error_kind_for",
    "get_http_status_code",
]
