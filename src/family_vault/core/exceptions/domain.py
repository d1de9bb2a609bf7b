"""Domain exceptions for the delegation engine.

Each exception corresponds to one kind of business rule failure; the
mapping to error kinds lives in ``error_mapping``.
"""

from typing import Any, Optional

from .base import FamilyVaultError


# Configuration Errors
class ConfigurationError(FamilyVaultError):
    """Raised when there's a configuration issue."""
    pass


# Validation Errors
class ValidationError(FamilyVaultError):
    """Raised when input data breaks a validation rule."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        details = {"field": field} if field else {}
        super().__init__(message, details=details)
        self.field = field
        self.value = value


# Lookup Errors
class EntityNotFoundError(FamilyVaultError):
    """Raised when an entity does not exist."""

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} {entity_id} not found",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class MemberNotFoundError(EntityNotFoundError):
    """Raised when a family member cannot be resolved."""

    def __init__(self, member_id: int):
        super().__init__("Member", member_id)


class RequestNotFoundError(EntityNotFoundError):
    """Raised when a delegation request does not exist."""

    def __init__(self, request_id: int):
        super().__init__("DelegationRequest", request_id)


class GrantNotFoundError(EntityNotFoundError):
    """Raised when a permission grant does not exist."""

    def __init__(self, grant_id: int):
        super().__init__("PermissionGrant", grant_id)


# Authorization Errors
class AuthorizationError(FamilyVaultError):
    """Base class for authorization-related errors."""
    pass


class PermissionDeniedError(AuthorizationError):
    """Raised when the acting member may not perform an action."""
    pass


# State Errors
class DelegationStateError(FamilyVaultError):
    """Base class for request and grant state conflicts."""
    pass


class DuplicateDelegationError(DelegationStateError):
    """Raised when a pending request or active grant already covers a tuple."""
    pass


class AlreadyProcessedError(DelegationStateError):
    """Raised when a terminal request or inactive grant is acted upon again."""
    pass


class GrantExpiredError(DelegationStateError):
    """Raised when a grant or request is past its expiration date."""
    pass
