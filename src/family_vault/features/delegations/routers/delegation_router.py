"""Delegation router.

One endpoint per engine operation. Engine failures are translated to HTTP
errors through the error-kind mapping.
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from ....config.constants import DashboardScope, DelegationLimits, DelegationScope, PermissionType
from ....core.exceptions import get_http_status_code
from ....core.shared.context import ActorContext
from ....core.shared.result import Result
from ...audit.services import AuditLogService
from ...dashboard.services import DashboardService
from ..models.requests import ApproveDelegationRequest, CreateDelegationRequest, ReasonRequest
from ..models.responses import (
    AccessCheckResponse,
    AuditEntryResponse,
    DashboardCountsResponse,
    DelegationApprovalResponse,
    DelegationRequestListResponse,
    DelegationRequestResponse,
    MemberStatisticsResponse,
    PermissionGrantResponse,
    PermissionSummaryResponse,
)
from ..services.authorization_service import DelegationAuthorizationService
from .dependencies import (
    get_actor_context,
    get_audit_service,
    get_authorization_service,
    get_dashboard_service,
)


router = APIRouter(
    prefix="/delegations",
    tags=["Delegations"],
    responses={
        403: {"description": "Caller may not perform this action"},
        404: {"description": "Member, request or grant not found"},
        409: {"description": "Duplicate delegation or already processed"},
        410: {"description": "Request or grant expired"},
        422: {"description": "Validation error"},
        500: {"description": "Internal server error"}
    }
)


def unwrap_or_raise(result: Result):
    """Return the success value or raise the mapped ``HTTPException``."""
    if result.is_failure:
        raise HTTPException(
            status_code=get_http_status_code(result.error),
            detail=result.to_dict()["error"],
        )
    return result.value


@router.post(
    "/requests",
    response_model=DelegationRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create delegation request",
)
async def create_request(
    request: CreateDelegationRequest,
    context: ActorContext = Depends(get_actor_context),
    service: DelegationAuthorizationService = Depends(get_authorization_service),
) -> DelegationRequestResponse:
    created = unwrap_or_raise(await service.create_request(
        context,
        request.owner_id,
        request.beneficiary_id,
        request.scope,
        request.target_id,
        request.permission_type,
        request.reason,
        request.expiration_date,
    ))
    return DelegationRequestResponse.from_entity(created)


@router.get(
    "/requests/pending",
    response_model=DelegationRequestListResponse,
    summary="List requests awaiting the caller's decision",
)
async def list_pending_requests(
    context: ActorContext = Depends(get_actor_context),
    service: DelegationAuthorizationService = Depends(get_authorization_service),
) -> DelegationRequestListResponse:
    pending = unwrap_or_raise(await service.list_pending_for_approver(context))
    return DelegationRequestListResponse.from_entities(pending)


@router.get(
    "/requests/{request_id}",
    response_model=DelegationRequestResponse,
    summary="Get delegation request",
)
async def get_request(
    request_id: int = Path(..., gt=0, description="Delegation request id"),
    context: ActorContext = Depends(get_actor_context),
    service: DelegationAuthorizationService = Depends(get_authorization_service),
) -> DelegationRequestResponse:
    found = unwrap_or_raise(await service.get_request(context, request_id))
    return DelegationRequestResponse.from_entity(found)


@router.post(
    "/requests/{request_id}/approve",
    response_model=DelegationApprovalResponse,
    summary="Approve delegation request",
)
async def approve_request(
    request_id: int = Path(..., gt=0, description="Delegation request id"),
    body: Optional[ApproveDelegationRequest] = Body(None),
    context: ActorContext = Depends(get_actor_context),
    service: DelegationAuthorizationService = Depends(get_authorization_service),
) -> DelegationApprovalResponse:
    comment = body.comment if body else None
    approval = unwrap_or_raise(await service.approve_request(context, request_id, comment))
    return DelegationApprovalResponse.from_entity(approval)


@router.post(
    "/requests/{request_id}/reject",
    response_model=DelegationRequestResponse,
    summary="Reject delegation request",
)
async def reject_request(
    body: ReasonRequest,
    request_id: int = Path(..., gt=0, description="Delegation request id"),
    context: ActorContext = Depends(get_actor_context),
    service: DelegationAuthorizationService = Depends(get_authorization_service),
) -> DelegationRequestResponse:
    rejected = unwrap_or_raise(await service.reject_request(context, request_id, body.reason))
    return DelegationRequestResponse.from_entity(rejected)


@router.post(
    "/grants/{grant_id}/revoke",
    response_model=PermissionGrantResponse,
    summary="Revoke permission grant",
)
async def revoke_grant(
    body: ReasonRequest,
    grant_id: int = Path(..., gt=0, description="Permission grant id"),
    context: ActorContext = Depends(get_actor_context),
    service: DelegationAuthorizationService = Depends(get_authorization_service),
) -> PermissionGrantResponse:
    revoked = unwrap_or_raise(await service.revoke_grant(context, grant_id, body.reason))
    return PermissionGrantResponse.from_entity(revoked)


@router.get(
    "/grants/summary",
    response_model=PermissionSummaryResponse,
    summary="Active grants of a member grouped by scope",
)
async def get_permissions_summary(
    beneficiary_id: Optional[int] = Query(None, description="Member, defaults to the caller"),
    context: ActorContext = Depends(get_actor_context),
    service: DelegationAuthorizationService = Depends(get_authorization_service),
) -> PermissionSummaryResponse:
    summary = unwrap_or_raise(await service.get_permissions_summary(context, beneficiary_id))
    return PermissionSummaryResponse.from_entity(summary)


@router.get(
    "/access",
    response_model=AccessCheckResponse,
    summary="Check access to a resource",
)
async def check_access(
    scope: DelegationScope = Query(..., description="Resource class"),
    permission_type: PermissionType = Query(..., description="Required access level"),
    target_id: Optional[int] = Query(None, description="Resource id, omitted for FULL_SPACE"),
    beneficiary_id: Optional[int] = Query(None, description="Member to check, defaults to the caller"),
    context: ActorContext = Depends(get_actor_context),
    service: DelegationAuthorizationService = Depends(get_authorization_service),
) -> AccessCheckResponse:
    beneficiary_id = context.member_id if beneficiary_id is None else beneficiary_id
    grant = unwrap_or_raise(
        await service.check_access(context, beneficiary_id, scope, target_id, permission_type)
    )
    return AccessCheckResponse(allowed=True, grant=PermissionGrantResponse.from_entity(grant))


@router.get(
    "/dashboard",
    response_model=DashboardCountsResponse,
    summary="Delegation counts for the caller",
)
async def get_dashboard(
    scope: DashboardScope = Query(DashboardScope.OWNER, description="owner, beneficiary or family"),
    context: ActorContext = Depends(get_actor_context),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardCountsResponse:
    counts = unwrap_or_raise(await service.get_counts(context, scope))
    return DashboardCountsResponse.from_entity(scope.value, counts)


@router.get(
    "/audit",
    response_model=List[AuditEntryResponse],
    summary="Audit history of the caller",
)
async def get_audit_history(
    limit: int = Query(DelegationLimits.LIST_DEFAULT_LIMIT, ge=1, le=500),
    context: ActorContext = Depends(get_actor_context),
    service: AuditLogService = Depends(get_audit_service),
) -> List[AuditEntryResponse]:
    entries = await service.history_for_member(context.member_id, limit)
    return [AuditEntryResponse.from_entity(entry) for entry in entries]


@router.get(
    "/statistics",
    response_model=MemberStatisticsResponse,
    summary="Delegation statistics of a member",
)
async def get_statistics(
    member_id: Optional[int] = Query(None, description="Member, defaults to the caller"),
    context: ActorContext = Depends(get_actor_context),
    service: DashboardService = Depends(get_dashboard_service),
) -> MemberStatisticsResponse:
    stats = unwrap_or_raise(await service.get_statistics(context, member_id))
    return MemberStatisticsResponse(**stats.to_dict())
