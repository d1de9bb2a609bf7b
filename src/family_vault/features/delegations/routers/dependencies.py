"""Delegation router dependencies.

The application stores its ``VaultServices`` container on ``app.state``;
these dependencies hand its parts to the endpoints. Caller identity comes
from the ``X-Member-Id`` header set by the authenticating gateway.
"""

from fastapi import Header, HTTPException, Request, status

from ....core.shared.context import ActorContext
from ...audit.services import AuditLogService
from ...dashboard.services import DashboardService
from ..services.authorization_service import DelegationAuthorizationService


def get_services(request: Request):
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Delegation services are not initialized",
        )
    return services


def get_authorization_service(request: Request) -> DelegationAuthorizationService:
    return get_services(request).authorization


def get_dashboard_service(request: Request) -> DashboardService:
    return get_services(request).dashboard


def get_audit_service(request: Request) -> AuditLogService:
    return get_services(request).audit


def get_actor_context(
    request: Request,
    member_id: int = Header(..., alias="X-Member-Id", gt=0, description="Calling member"),
) -> ActorContext:
    return ActorContext(
        member_id=member_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        request_metadata={"path": request.url.path, "method": request.method},
    )
