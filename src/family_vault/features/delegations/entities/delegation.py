"""Delegation domain entities.

This module defines delegation requests, the permission grants derived
from approved requests, and the lifecycle rules attached to them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, NamedTuple, Optional

from ....config.constants import DelegationScope, PermissionType, RequestStatus
from ....core.exceptions import AlreadyProcessedError
from ....utils.datetime import is_past, utc_now


class DelegationKey(NamedTuple):
    """Tuple that at most one active grant may hold."""

    beneficiary_id: int
    scope: DelegationScope
    target_id: Optional[int]
    permission_type: PermissionType


@dataclass
class DelegationRequest:
    """A member's request for access to resources owned by another member.

    Status moves forward only: PENDING to APPROVED or REJECTED, and
    APPROVED to REVOKED once the derived grant is revoked or expires.
    """

    owner_id: int
    beneficiary_id: int
    scope: DelegationScope
    permission_type: PermissionType
    reason: str
    target_id: Optional[int] = None
    id: Optional[int] = None
    requested_at: datetime = field(default_factory=utc_now)
    status: RequestStatus = RequestStatus.PENDING

    # Resolution
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolution_comment: Optional[str] = None

    expiration_date: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status is RequestStatus.PENDING

    @property
    def key(self) -> DelegationKey:
        return DelegationKey(self.beneficiary_id, self.scope, self.target_id, self.permission_type)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return is_past(self.expiration_date, now)

    def resolve(self, status: RequestStatus, resolved_by: int,
                resolved_at: datetime, comment: Optional[str] = None) -> None:
        """Move a pending request to APPROVED or REJECTED."""
        if not self.is_pending:
            raise AlreadyProcessedError(
                f"Delegation request {self.id} is already {self.status.value}",
                details={"request_id": self.id, "status": self.status.value},
            )
        if status not in (RequestStatus.APPROVED, RequestStatus.REJECTED):
            raise ValueError(f"Cannot resolve a request to {status.value}")
        self.status = status
        self.resolved_by = resolved_by
        self.resolved_at = resolved_at
        self.resolution_comment = comment

    def mark_revoked(self) -> None:
        """Back-propagate a grant revocation to the originating request."""
        if self.status is not RequestStatus.APPROVED:
            raise AlreadyProcessedError(
                f"Delegation request {self.id} is {self.status.value}, not APPROVED",
                details={"request_id": self.id, "status": self.status.value},
            )
        self.status = RequestStatus.REVOKED

    def describe_target(self) -> str:
        if self.scope is DelegationScope.FULL_SPACE:
            return "the full space"
        return f"{self.scope.value} {self.target_id}"


@dataclass
class PermissionGrant:
    """Active access right derived from an approved delegation request."""

    owner_id: int
    beneficiary_id: int
    scope: DelegationScope
    permission_type: PermissionType
    target_id: Optional[int] = None
    id: Optional[int] = None
    granted_at: datetime = field(default_factory=utc_now)
    expiration_date: Optional[datetime] = None
    active: bool = True
    origin_request_id: Optional[int] = None

    # Revocation
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[int] = None
    revocation_reason: Optional[str] = None

    @classmethod
    def from_request(cls, request: DelegationRequest, granted_at: datetime) -> "PermissionGrant":
        """Derive the grant for an approved request."""
        return cls(
            owner_id=request.owner_id,
            beneficiary_id=request.beneficiary_id,
            scope=request.scope,
            target_id=request.target_id,
            permission_type=request.permission_type,
            granted_at=granted_at,
            expiration_date=request.expiration_date,
            origin_request_id=request.id,
        )

    @property
    def key(self) -> DelegationKey:
        return DelegationKey(self.beneficiary_id, self.scope, self.target_id, self.permission_type)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return is_past(self.expiration_date, now)

    def is_effective(self, now: Optional[datetime] = None) -> bool:
        """Active and not past its expiration date."""
        return self.active and not self.is_expired(now)

    def deactivate(self, revoked_by: int, reason: str, revoked_at: datetime) -> None:
        if not self.active:
            raise AlreadyProcessedError(
                f"Permission grant {self.id} is already inactive",
                details={"grant_id": self.id},
            )
        self.active = False
        self.revoked_by = revoked_by
        self.revoked_at = revoked_at
        self.revocation_reason = reason

    def describe_target(self) -> str:
        if self.scope is DelegationScope.FULL_SPACE:
            return "the full space"
        return f"{self.scope.value} {self.target_id}"


@dataclass(frozen=True)
class DelegationApproval:
    """Outcome of an approval: the resolved request and its grant."""

    request: DelegationRequest
    grant: PermissionGrant


@dataclass(frozen=True)
class PermissionSummary:
    """Effective grants of one beneficiary, grouped by scope."""

    beneficiary_id: int
    grants_by_scope: Dict[DelegationScope, List[PermissionGrant]]
    generated_at: datetime

    @classmethod
    def from_grants(cls, beneficiary_id: int, grants: List[PermissionGrant],
                    generated_at: datetime) -> "PermissionSummary":
        grouped: Dict[DelegationScope, List[PermissionGrant]] = {scope: [] for scope in DelegationScope}
        for grant in grants:
            grouped[grant.scope].append(grant)
        return cls(beneficiary_id, grouped, generated_at)

    @property
    def has_full_space_access(self) -> bool:
        return bool(self.grants_by_scope.get(DelegationScope.FULL_SPACE))

    @property
    def total_active(self) -> int:
        return sum(len(grants) for grants in self.grants_by_scope.values())
