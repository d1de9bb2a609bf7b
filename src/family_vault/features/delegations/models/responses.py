"""Delegation response models for the REST surface."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ....config.constants import AuditAction, AuditSeverity, DelegationScope, PermissionType, RequestStatus
from ...audit.entities import AuditEntry
from ...dashboard.entities import DelegationCounts
from ..entities.delegation import DelegationApproval, DelegationRequest, PermissionGrant, PermissionSummary


class DelegationRequestResponse(BaseModel):
    id: int
    owner_id: int
    beneficiary_id: int
    scope: DelegationScope
    target_id: Optional[int] = None
    permission_type: PermissionType
    reason: str
    requested_at: datetime
    status: RequestStatus
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolution_comment: Optional[str] = None
    expiration_date: Optional[datetime] = None

    @classmethod
    def from_entity(cls, request: DelegationRequest) -> "DelegationRequestResponse":
        return cls(
            id=request.id,
            owner_id=request.owner_id,
            beneficiary_id=request.beneficiary_id,
            scope=request.scope,
            target_id=request.target_id,
            permission_type=request.permission_type,
            reason=request.reason,
            requested_at=request.requested_at,
            status=request.status,
            resolved_by=request.resolved_by,
            resolved_at=request.resolved_at,
            resolution_comment=request.resolution_comment,
            expiration_date=request.expiration_date,
        )


class PermissionGrantResponse(BaseModel):
    id: int
    owner_id: int
    beneficiary_id: int
    scope: DelegationScope
    target_id: Optional[int] = None
    permission_type: PermissionType
    granted_at: datetime
    expiration_date: Optional[datetime] = None
    active: bool
    origin_request_id: Optional[int] = None
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[int] = None
    revocation_reason: Optional[str] = None

    @classmethod
    def from_entity(cls, grant: PermissionGrant) -> "PermissionGrantResponse":
        return cls(
            id=grant.id,
            owner_id=grant.owner_id,
            beneficiary_id=grant.beneficiary_id,
            scope=grant.scope,
            target_id=grant.target_id,
            permission_type=grant.permission_type,
            granted_at=grant.granted_at,
            expiration_date=grant.expiration_date,
            active=grant.active,
            origin_request_id=grant.origin_request_id,
            revoked_at=grant.revoked_at,
            revoked_by=grant.revoked_by,
            revocation_reason=grant.revocation_reason,
        )


class DelegationApprovalResponse(BaseModel):
    request: DelegationRequestResponse
    grant: PermissionGrantResponse

    @classmethod
    def from_entity(cls, approval: DelegationApproval) -> "DelegationApprovalResponse":
        return cls(
            request=DelegationRequestResponse.from_entity(approval.request),
            grant=PermissionGrantResponse.from_entity(approval.grant),
        )


class DelegationRequestListResponse(BaseModel):
    requests: List[DelegationRequestResponse] = Field(default_factory=list)
    total: int = 0

    @classmethod
    def from_entities(cls, requests: List[DelegationRequest]) -> "DelegationRequestListResponse":
        return cls(
            requests=[DelegationRequestResponse.from_entity(r) for r in requests],
            total=len(requests),
        )


class PermissionSummaryResponse(BaseModel):
    beneficiary_id: int
    file_grants: List[PermissionGrantResponse] = Field(default_factory=list)
    folder_grants: List[PermissionGrantResponse] = Field(default_factory=list)
    category_grants: List[PermissionGrantResponse] = Field(default_factory=list)
    has_full_space_access: bool = False
    total_active: int = 0
    generated_at: datetime

    @classmethod
    def from_entity(cls, summary: PermissionSummary) -> "PermissionSummaryResponse":
        def grants(scope: DelegationScope) -> List[PermissionGrantResponse]:
            return [PermissionGrantResponse.from_entity(g) for g in summary.grants_by_scope.get(scope, [])]

        return cls(
            beneficiary_id=summary.beneficiary_id,
            file_grants=grants(DelegationScope.FILE),
            folder_grants=grants(DelegationScope.FOLDER),
            category_grants=grants(DelegationScope.CATEGORY),
            has_full_space_access=summary.has_full_space_access,
            total_active=summary.total_active,
            generated_at=summary.generated_at,
        )


class AccessCheckResponse(BaseModel):
    allowed: bool
    grant: Optional[PermissionGrantResponse] = None


class DashboardCountsResponse(BaseModel):
    scope: str
    pending: int
    approved: int
    rejected: int
    revoked: int
    active_grants: int

    @classmethod
    def from_entity(cls, scope: str, counts: DelegationCounts) -> "DashboardCountsResponse":
        return cls(scope=scope, **counts.to_dict())


class AuditEntryResponse(BaseModel):
    id: int
    action: AuditAction
    actor_id: int
    subject_permission_id: Optional[int] = None
    subject_beneficiary_id: Optional[int] = None
    subject_request_id: Optional[int] = None
    description: str
    timestamp: datetime
    severity: AuditSeverity

    @classmethod
    def from_entity(cls, entry: AuditEntry) -> "AuditEntryResponse":
        return cls(
            id=entry.id,
            action=entry.action,
            actor_id=entry.actor_id,
            subject_permission_id=entry.subject_permission_id,
            subject_beneficiary_id=entry.subject_beneficiary_id,
            subject_request_id=entry.subject_request_id,
            description=entry.description,
            timestamp=entry.timestamp,
            severity=entry.severity,
        )


class MemberStatisticsResponse(BaseModel):
    member_id: int
    total_owned_requests: int
    total_beneficiary_requests: int
    pending_owned_requests: int
    pending_beneficiary_requests: int
    active_owned_grants: int
    active_beneficiary_grants: int
