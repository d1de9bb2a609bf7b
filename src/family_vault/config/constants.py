"""Constants and enums for family-vault.

This module defines the enums and fixed values used throughout the
delegation engine. The string values are persisted as-is in the
database columns of the delegation schema.
"""

from enum import Enum
from typing import Final, FrozenSet


class DelegationScope(str, Enum):
    """Resource class a delegation applies to."""

    FILE = "FILE"
    FOLDER = "FOLDER"
    CATEGORY = "CATEGORY"
    FULL_SPACE = "FULL_SPACE"

    @property
    def requires_target(self) -> bool:
        """FULL_SPACE is the only scope without a target resource."""
        return self is not DelegationScope.FULL_SPACE


class PermissionType(str, Enum):
    """Level of access a grant confers."""

    READ = "READ"
    WRITE = "WRITE"
    FULL = "FULL"

    @property
    def rank(self) -> int:
        return _PERMISSION_RANKS[self]

    def covers(self, requested: "PermissionType") -> bool:
        """Check whether a grant of this type satisfies a check for ``requested``."""
        return self.rank >= requested.rank

    @classmethod
    def covering(cls, requested: "PermissionType") -> FrozenSet["PermissionType"]:
        """All permission types that satisfy a check for ``requested``."""
        return frozenset(p for p in cls if p.covers(requested))


_PERMISSION_RANKS = {
    PermissionType.READ: 1,
    PermissionType.WRITE: 2,
    PermissionType.FULL: 3,
}


class RequestStatus(str, Enum):
    """Delegation request lifecycle states."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REVOKED = "REVOKED"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class DelegationAction(str, Enum):
    """Actions gated by the delegation policy."""

    CREATE_REQUEST = "create_request"
    CREATE_FULL_SPACE = "create_full_space"
    APPROVE = "approve"
    REJECT = "reject"
    REVOKE = "revoke"
    ADMINISTER = "administer"
    VIEW = "view"


class AuditAction(str, Enum):
    """Audited actions emitted by the engine."""

    DELEGATION_REQUESTED = "DELEGATION_REQUESTED"
    DELEGATION_APPROVED = "DELEGATION_APPROVED"
    DELEGATION_REJECTED = "DELEGATION_REJECTED"
    PERMISSION_GRANTED = "PERMISSION_GRANTED"
    PERMISSION_REVOKED = "PERMISSION_REVOKED"
    PERMISSION_EXPIRED = "PERMISSION_EXPIRED"
    ACCESS_GRANTED = "ACCESS_GRANTED"
    ACCESS_DENIED = "ACCESS_DENIED"

    @property
    def is_mutation(self) -> bool:
        return self not in (AuditAction.ACCESS_GRANTED, AuditAction.ACCESS_DENIED)


class AuditSeverity(str, Enum):
    """Audit entry severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DashboardScope(str, Enum):
    """Perspective a dashboard is computed from."""

    OWNER = "owner"
    BENEFICIARY = "beneficiary"
    FAMILY = "family"


class DelegationLimits:
    """Validation limits for delegation data."""

    REASON_MAX_LENGTH: Final[int] = 500
    COMMENT_MAX_LENGTH: Final[int] = 500
    EXPIRING_SOON_DAYS: Final[int] = 7
    LIST_DEFAULT_LIMIT: Final[int] = 100


class CacheKeys:
    """Cache key patterns for dashboard views."""

    DASHBOARD: Final[str] = "dashboard:{scope}:{subject_id}"
    STATISTICS: Final[str] = "dashboard:stats:{member_id}"


class DatabaseSchemas:
    """Database schema names."""

    DEFAULT: Final[str] = "family_vault"


EXPIRED_REQUEST_COMMENT: Final[str] = "Request expired before resolution"
EXPIRED_GRANT_REASON: Final[str] = "Grant expired"
