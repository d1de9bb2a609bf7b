"""Delegation authorization engine.

Drives the request lifecycle (create, approve, reject), derives permission
grants from approved requests, revokes and expires grants, and answers
access checks. Every public coroutine returns a ``Result``; failures
inside are raised as ``FamilyVaultError`` subclasses and converted once,
at the boundary, by ``engine_operation``.

Events are published after the storage transaction commits.
"""

import functools
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from ....config.constants import (
    AuditAction,
    AuditSeverity,
    DelegationAction,
    DelegationLimits,
    DelegationScope,
    PermissionType,
    RequestStatus,
    EXPIRED_GRANT_REASON,
    EXPIRED_REQUEST_COMMENT,
)
from ....core.exceptions import (
    AlreadyProcessedError,
    DuplicateDelegationError,
    EntityAlreadyExistsError,
    FamilyVaultError,
    GrantExpiredError,
    GrantNotFoundError,
    PermissionDeniedError,
    RequestNotFoundError,
    ValidationError,
    error_kind_for,
)
from ....core.shared.context import ActorContext, SYSTEM_ACTOR_ID
from ....core.shared.result import ErrorKind, Result
from ....utils.datetime import utc_now
from ...events.entities import DelegationEvent, EventPublisher
from ...members.entities import Member, MemberDirectory
from ..entities.delegation import DelegationApproval, DelegationRequest, PermissionGrant, PermissionSummary
from ..entities.protocols import DelegationStore
from ..utils.validation import DelegationValidationRules, parse_enum, validated
from .policy import DelegationPolicy

logger = logging.getLogger(__name__)


def engine_operation(operation_name: str) -> Callable:
    """Turn an engine coroutine into a ``Result`` producer.

    ``FamilyVaultError`` becomes a failure of the mapped kind; anything else
    is logged and reported as INTERNAL.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, context: ActorContext, *args, **kwargs) -> Result:
            try:
                return Result.success(await func(self, context, *args, **kwargs))
            except FamilyVaultError as e:
                kind = error_kind_for(e)
                if kind is ErrorKind.INTERNAL:
                    logger.error(
                        f"{operation_name} failed for member {context.member_id}: {e.message}",
                        extra=context.to_log_extra(),
                    )
                else:
                    logger.info(
                        f"{operation_name} refused for member {context.member_id}: "
                        f"{kind.value} {e.message}",
                        extra=context.to_log_extra(),
                    )
                return Result.failure(kind, e.message, e.details)
            except Exception as e:
                logger.exception(
                    f"Unexpected error during {operation_name} for member {context.member_id}: {e}",
                    extra=context.to_log_extra(),
                )
                return Result.failure(ErrorKind.INTERNAL, f"Unexpected error during {operation_name}")
        return wrapper
    return decorator


class DelegationAuthorizationService:
    """The delegation authorization engine."""

    def __init__(
        self,
        store: DelegationStore,
        members: MemberDirectory,
        events: EventPublisher,
        reason_max_length: int = DelegationLimits.REASON_MAX_LENGTH,
        expiring_soon_days: int = DelegationLimits.EXPIRING_SOON_DAYS,
        audit_access_denied: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the engine.

        Args:
            store: Request and grant repositories with a shared transaction
            members: Membership provider
            events: Publisher receiving one event per state change
            reason_max_length: Upper bound for request, rejection and revocation reasons
            expiring_soon_days: Default window of ``list_expiring_grants``
            audit_access_denied: Publish ACCESS_DENIED events from ``check_access``
            clock: Source of the current UTC time
        """
        self._store = store
        self._members = members
        self._policy = DelegationPolicy(members)
        self._events = events
        self._reason_max_length = reason_max_length
        self._expiring_soon_days = expiring_soon_days
        self._audit_access_denied = audit_access_denied
        self._clock = clock

    @property
    def policy(self) -> DelegationPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    @engine_operation("create delegation request")
    async def create_request(
        self,
        context: ActorContext,
        owner_id: int,
        beneficiary_id: int,
        scope: DelegationScope,
        target_id: Optional[int],
        permission_type: PermissionType,
        reason: str,
        expiration_date: Optional[datetime] = None,
    ) -> DelegationRequest:
        """Submit a PENDING delegation request.

        The requester is ``context.member_id``: the owner offering access,
        the beneficiary asking for it, or an admin/responsible member of
        the owner's family. FULL_SPACE requests need an admin/responsible
        requester.
        """
        now = self._clock()
        scope = parse_enum(DelegationScope, scope, "scope")
        permission_type = parse_enum(PermissionType, permission_type, "permission_type")
        target_id = validated("target_id", DelegationValidationRules.validate_target, scope, target_id)
        reason = validated("reason", DelegationValidationRules.validate_reason, reason, self._reason_max_length)
        expiration_date = validated(
            "expiration_date", DelegationValidationRules.validate_expiration, expiration_date, now
        )
        validated("beneficiary_id", DelegationValidationRules.validate_distinct_members, owner_id, beneficiary_id)

        actor = await self._policy.get_actor(context)
        owner = await self._member(actor, owner_id)
        beneficiary = await self._member(actor, beneficiary_id)
        if not owner.same_family(beneficiary):
            raise PermissionDeniedError(
                f"Members {owner.id} and {beneficiary.id} do not belong to the same family",
                details={"owner_id": owner.id, "beneficiary_id": beneficiary.id},
            )
        self._policy.check(actor, owner, DelegationAction.CREATE_REQUEST, beneficiary.id)
        if scope is DelegationScope.FULL_SPACE:
            self._policy.check(actor, owner, DelegationAction.CREATE_FULL_SPACE, beneficiary.id)

        async with self._store.transaction():
            active = await self._store.grants.find_active_grant(beneficiary_id, scope, target_id, permission_type)
            if active is not None and active.is_effective(now):
                raise DuplicateDelegationError(
                    f"Member {beneficiary_id} already holds {permission_type.value} access "
                    f"to {active.describe_target()}",
                    details={"grant_id": active.id},
                )
            pending = await self._store.requests.find_pending_duplicate(
                owner_id, beneficiary_id, scope, target_id, permission_type
            )
            if pending is not None:
                raise DuplicateDelegationError(
                    f"An identical delegation request is already pending (request {pending.id})",
                    details={"request_id": pending.id},
                )
            created = await self._store.requests.create(
                DelegationRequest(
                    owner_id=owner_id,
                    beneficiary_id=beneficiary_id,
                    scope=scope,
                    target_id=target_id,
                    permission_type=permission_type,
                    reason=reason,
                    requested_at=now,
                    expiration_date=expiration_date,
                )
            )

        logger.info(
            f"Member {actor.id} requested {permission_type.value} on {created.describe_target()} "
            f"of member {owner_id} for member {beneficiary_id} (request {created.id})"
        )
        await self._publish(self._request_event(
            AuditAction.DELEGATION_REQUESTED, context, created, owner.family_id, reason=reason
        ))
        return created

    @engine_operation("approve delegation request")
    async def approve_request(self, context: ActorContext, request_id: int,
                              comment: Optional[str] = None) -> DelegationApproval:
        """Approve a pending request and create its grant in one transaction.

        The request stays PENDING when the grant cannot be created.
        """
        request = await self._require_request(request_id)
        actor, owner = await self._policy.require(
            context, DelegationAction.APPROVE, request.owner_id, request.beneficiary_id
        )
        self._require_pending(request)
        comment = validated("comment", DelegationValidationRules.validate_comment, comment, self._reason_max_length)

        now = self._clock()
        if request.is_expired(now):
            raise GrantExpiredError(
                f"Delegation request {request_id} expired on {request.expiration_date.isoformat()}",
                details={"request_id": request_id},
            )

        retired: List[PermissionGrant] = []
        async with self._store.transaction():
            approved = await self._store.requests.resolve(
                request_id, RequestStatus.APPROVED, actor.id, now, comment
            )
            if approved is None:
                raise self._already_processed(request_id)

            existing = await self._store.grants.find_active_grant(*approved.key)
            if existing is not None:
                if not existing.is_expired(now):
                    raise DuplicateDelegationError(
                        f"Member {approved.beneficiary_id} already holds an active "
                        f"{approved.permission_type.value} grant on {approved.describe_target()}",
                        details={"grant_id": existing.id},
                    )
                expired = await self._retire_grant(existing, SYSTEM_ACTOR_ID, now)
                if expired is not None:
                    retired.append(expired)

            try:
                grant = await self._store.grants.create(PermissionGrant.from_request(approved, now))
            except EntityAlreadyExistsError as e:
                raise DuplicateDelegationError(
                    f"Member {approved.beneficiary_id} already holds an active "
                    f"{approved.permission_type.value} grant on {approved.describe_target()}",
                    details=e.details,
                ) from e

        logger.info(f"Member {actor.id} approved request {request_id}, created grant {grant.id}")
        for expired in retired:
            await self._publish(self._grant_event(
                AuditAction.PERMISSION_EXPIRED, context, expired, owner.family_id,
                reason=EXPIRED_GRANT_REASON, actor_id=SYSTEM_ACTOR_ID,
            ))
        await self._publish(self._request_event(
            AuditAction.DELEGATION_APPROVED, context, approved, owner.family_id, reason=comment,
            grant_id=grant.id,
        ))
        await self._publish(self._grant_event(
            AuditAction.PERMISSION_GRANTED, context, grant, owner.family_id
        ))
        return DelegationApproval(request=approved, grant=grant)

    @engine_operation("reject delegation request")
    async def reject_request(self, context: ActorContext, request_id: int, reason: str) -> DelegationRequest:
        reason = validated("reason", DelegationValidationRules.validate_reason, reason, self._reason_max_length)
        request = await self._require_request(request_id)
        actor, owner = await self._policy.require(
            context, DelegationAction.REJECT, request.owner_id, request.beneficiary_id
        )
        self._require_pending(request)

        rejected = await self._store.requests.resolve(
            request_id, RequestStatus.REJECTED, actor.id, self._clock(), reason
        )
        if rejected is None:
            raise self._already_processed(request_id)

        logger.info(f"Member {actor.id} rejected request {request_id}")
        await self._publish(self._request_event(
            AuditAction.DELEGATION_REJECTED, context, rejected, owner.family_id, reason=reason
        ))
        return rejected

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    @engine_operation("revoke permission grant")
    async def revoke_grant(self, context: ActorContext, grant_id: int, reason: str) -> PermissionGrant:
        """Deactivate a grant and move its originating request to REVOKED."""
        reason = validated("reason", DelegationValidationRules.validate_reason, reason, self._reason_max_length)
        grant = await self._store.grants.find_by_id(grant_id)
        if grant is None:
            raise GrantNotFoundError(grant_id)
        actor, owner = await self._policy.require(
            context, DelegationAction.REVOKE, grant.owner_id, grant.beneficiary_id
        )
        if not grant.active:
            raise AlreadyProcessedError(
                f"Permission grant {grant_id} is already inactive",
                details={"grant_id": grant_id},
            )

        async with self._store.transaction():
            revoked = await self._retire_grant(grant, actor.id, self._clock(), reason)
            if revoked is None:
                raise AlreadyProcessedError(
                    f"Permission grant {grant_id} was revoked concurrently",
                    details={"grant_id": grant_id},
                )

        logger.info(f"Member {actor.id} revoked grant {grant_id}")
        await self._publish(self._grant_event(
            AuditAction.PERMISSION_REVOKED, context, revoked, owner.family_id,
            reason=reason, severity=AuditSeverity.WARNING,
        ))
        return revoked

    async def has_permission(self, beneficiary_id: int, scope: DelegationScope,
                             target_id: Optional[int], permission_type: PermissionType) -> bool:
        """Whether an active, unexpired grant covers the tuple.

        Storage failures deny access.
        """
        try:
            scope = DelegationScope(scope)
            permission_type = PermissionType(permission_type)
        except ValueError:
            return False
        try:
            grants = await self._store.grants.find_active_covering(
                beneficiary_id, scope, target_id, PermissionType.covering(permission_type)
            )
        except Exception as e:
            logger.error(f"Permission check for member {beneficiary_id} failed, denying: {e}")
            return False
        now = self._clock()
        return any(grant.is_effective(now) for grant in grants)

    @engine_operation("check access")
    async def check_access(self, context: ActorContext, beneficiary_id: int, scope: DelegationScope,
                           target_id: Optional[int], permission_type: PermissionType) -> PermissionGrant:
        """Return the weakest effective grant covering the tuple.

        Members may check their own access; family managers may check any
        member of their family. The system actor checks on behalf of
        resource controllers.
        """
        scope = parse_enum(DelegationScope, scope, "scope")
        permission_type = parse_enum(PermissionType, permission_type, "permission_type")
        if not context.is_system:
            await self._policy.require(context, DelegationAction.VIEW, beneficiary_id, beneficiary_id)

        grants = await self._store.grants.find_active_covering(
            beneficiary_id, scope, target_id, PermissionType.covering(permission_type)
        )
        now = self._clock()
        effective = sorted(
            (grant for grant in grants if grant.is_effective(now)),
            key=lambda grant: grant.permission_type.rank,
        )
        if effective:
            return effective[0]

        label = "the full space" if scope is DelegationScope.FULL_SPACE else f"{scope.value} {target_id}"
        if grants:
            error = GrantExpiredError(
                f"Access of member {beneficiary_id} to {label} has expired",
                details={"grant_ids": [grant.id for grant in grants]},
            )
        else:
            error = PermissionDeniedError(
                f"Member {beneficiary_id} has no {permission_type.value} access to {label}",
                details={"beneficiary_id": beneficiary_id},
            )
        if self._audit_access_denied:
            await self._publish(DelegationEvent(
                action=AuditAction.ACCESS_DENIED,
                actor_id=context.member_id,
                beneficiary_id=beneficiary_id,
                scope=scope,
                target_id=target_id,
                permission_type=permission_type,
                reason=error.message,
                severity=AuditSeverity.WARNING,
                correlation_id=context.correlation_id,
            ))
        raise error

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    @engine_operation("expire stale requests")
    async def expire_stale_requests(self, context: ActorContext) -> List[DelegationRequest]:
        """Reject pending requests whose expiration date has passed."""
        actor = await self._policy.require_administrator(context)
        now = self._clock()
        stale = await self._scoped_to_family(actor, await self._store.requests.find_expired_pending(now))
        resolver_id = actor.id if actor else SYSTEM_ACTOR_ID

        expired: List[DelegationRequest] = []
        for request in stale:
            rejected = await self._store.requests.resolve(
                request.id, RequestStatus.REJECTED, resolver_id, now, EXPIRED_REQUEST_COMMENT
            )
            if rejected is None:
                continue
            expired.append(rejected)
            await self._publish(self._request_event(
                AuditAction.DELEGATION_REJECTED, context, rejected,
                await self._family_of(rejected.owner_id), reason=EXPIRED_REQUEST_COMMENT,
            ))

        if expired:
            logger.info(f"Expired {len(expired)} stale delegation requests")
        return expired

    @engine_operation("expire grants")
    async def expire_grants(self, context: ActorContext) -> List[PermissionGrant]:
        """Deactivate grants past their expiration date."""
        actor = await self._policy.require_administrator(context)
        now = self._clock()
        due = await self._scoped_to_family(actor, await self._store.grants.find_expired_active(now))

        expired: List[PermissionGrant] = []
        for grant in due:
            async with self._store.transaction():
                retired = await self._retire_grant(grant, SYSTEM_ACTOR_ID, now)
            if retired is None:
                continue
            expired.append(retired)
            await self._publish(self._grant_event(
                AuditAction.PERMISSION_EXPIRED, context, retired,
                await self._family_of(retired.owner_id), reason=EXPIRED_GRANT_REASON,
                actor_id=SYSTEM_ACTOR_ID,
            ))

        if expired:
            logger.info(f"Expired {len(expired)} permission grants")
        return expired

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @engine_operation("get delegation request")
    async def get_request(self, context: ActorContext, request_id: int) -> DelegationRequest:
        request = await self._require_request(request_id)
        await self._policy.require(context, DelegationAction.VIEW, request.owner_id, request.beneficiary_id)
        return request

    @engine_operation("get permission grant")
    async def get_grant(self, context: ActorContext, grant_id: int) -> PermissionGrant:
        grant = await self._store.grants.find_by_id(grant_id)
        if grant is None:
            raise GrantNotFoundError(grant_id)
        await self._policy.require(context, DelegationAction.VIEW, grant.owner_id, grant.beneficiary_id)
        return grant

    @engine_operation("list pending requests")
    async def list_pending_for_approver(self, context: ActorContext) -> List[DelegationRequest]:
        """Pending requests the caller may approve or reject."""
        actor = await self._policy.get_actor(context)
        if actor.is_family_manager:
            owner_ids = await self._policy.family_member_ids(actor)
        else:
            owner_ids = [actor.id]
        return await self._store.requests.find_pending_by_owners(owner_ids)

    @engine_operation("list requests by owner")
    async def list_requests_by_owner(self, context: ActorContext, owner_id: int,
                                     status: Optional[RequestStatus] = None,
                                     limit: Optional[int] = None) -> List[DelegationRequest]:
        status = parse_enum(RequestStatus, status, "status") if status is not None else None
        await self._policy.require(context, DelegationAction.VIEW, owner_id)
        return await self._store.requests.find_by_owner(owner_id, status, limit)

    @engine_operation("list requests by beneficiary")
    async def list_requests_by_beneficiary(self, context: ActorContext, beneficiary_id: int,
                                           status: Optional[RequestStatus] = None,
                                           limit: Optional[int] = None) -> List[DelegationRequest]:
        status = parse_enum(RequestStatus, status, "status") if status is not None else None
        await self._policy.require(context, DelegationAction.VIEW, beneficiary_id, beneficiary_id)
        return await self._store.requests.find_by_beneficiary(beneficiary_id, status, limit)

    @engine_operation("list grants for beneficiary")
    async def list_grants_for_beneficiary(self, context: ActorContext, beneficiary_id: int,
                                          active_only: bool = True) -> List[PermissionGrant]:
        await self._policy.require(context, DelegationAction.VIEW, beneficiary_id, beneficiary_id)
        return await self._store.grants.find_by_beneficiary(beneficiary_id, active_only)

    @engine_operation("summarize permissions")
    async def get_permissions_summary(self, context: ActorContext,
                                      beneficiary_id: Optional[int] = None) -> PermissionSummary:
        """Active, unexpired grants of a beneficiary grouped by scope."""
        beneficiary_id = context.member_id if beneficiary_id is None else beneficiary_id
        await self._policy.require(context, DelegationAction.VIEW, beneficiary_id, beneficiary_id)
        now = self._clock()
        grants = await self._store.grants.find_by_beneficiary(beneficiary_id, True)
        return PermissionSummary.from_grants(
            beneficiary_id, [g for g in grants if g.is_effective(now)], now
        )

    @engine_operation("list grants by owner")
    async def list_grants_by_owner(self, context: ActorContext, owner_id: int,
                                   active_only: bool = True) -> List[PermissionGrant]:
        await self._policy.require(context, DelegationAction.VIEW, owner_id)
        return await self._store.grants.find_by_owner(owner_id, active_only)

    @engine_operation("list expiring grants")
    async def list_expiring_grants(self, context: ActorContext,
                                   days: Optional[int] = None) -> List[PermissionGrant]:
        """Active grants the caller owns or benefits from that expire within ``days``."""
        days = self._expiring_soon_days if days is None else days
        if days <= 0:
            raise ValidationError("days must be positive", field="days", value=days)
        actor = await self._policy.get_actor(context)
        now = self._clock()
        until = now + timedelta(days=days)

        owned = await self._store.grants.find_expiring_between(now, until, owner_id=actor.id)
        received = await self._store.grants.find_expiring_between(now, until, beneficiary_id=actor.id)
        merged: Dict[int, PermissionGrant] = {grant.id: grant for grant in owned + received}
        return sorted(merged.values(), key=lambda grant: (grant.expiration_date, grant.id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _member(self, actor: Member, member_id: int) -> Member:
        if actor.id == member_id:
            return actor
        return await self._policy.get_member(member_id)

    async def _require_request(self, request_id: int) -> DelegationRequest:
        request = await self._store.requests.find_by_id(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    def _require_pending(self, request: DelegationRequest) -> None:
        if not request.is_pending:
            raise AlreadyProcessedError(
                f"Delegation request {request.id} is already {request.status.value}",
                details={"request_id": request.id, "status": request.status.value},
            )

    @staticmethod
    def _already_processed(request_id: int) -> AlreadyProcessedError:
        return AlreadyProcessedError(
            f"Delegation request {request_id} was resolved concurrently",
            details={"request_id": request_id},
        )

    async def _retire_grant(self, grant: PermissionGrant, revoked_by: int, now: datetime,
                            reason: str = EXPIRED_GRANT_REASON) -> Optional[PermissionGrant]:
        """Deactivate ``grant`` and back-propagate to its request. Call inside a transaction."""
        retired = await self._store.grants.deactivate(grant.id, revoked_by, reason, now)
        if retired is not None and retired.origin_request_id is not None:
            await self._store.requests.mark_revoked(retired.origin_request_id)
        return retired

    async def _scoped_to_family(self, actor: Optional[Member], items: List) -> List:
        """Restrict maintenance to the actor's family; the system actor sees everything."""
        if actor is None:
            return items
        family = set(await self._policy.family_member_ids(actor))
        return [item for item in items if item.owner_id in family]

    async def _family_of(self, member_id: int) -> Optional[int]:
        member = await self._members.get_member(member_id)
        return member.family_id if member else None

    async def _publish(self, event: DelegationEvent) -> None:
        try:
            await self._events.publish(event)
        except Exception as e:
            logger.error(f"Failed to publish {event.action.value} event: {e}")

    @staticmethod
    def _request_event(action: AuditAction, context: ActorContext, request: DelegationRequest,
                       family_id: Optional[int], reason: Optional[str] = None,
                       grant_id: Optional[int] = None) -> DelegationEvent:
        return DelegationEvent(
            action=action,
            actor_id=context.member_id,
            owner_id=request.owner_id,
            beneficiary_id=request.beneficiary_id,
            family_id=family_id,
            request_id=request.id,
            grant_id=grant_id,
            scope=request.scope,
            target_id=request.target_id,
            permission_type=request.permission_type,
            reason=reason,
            correlation_id=context.correlation_id,
        )

    @staticmethod
    def _grant_event(action: AuditAction, context: ActorContext, grant: PermissionGrant,
                     family_id: Optional[int], reason: Optional[str] = None,
                     severity: AuditSeverity = AuditSeverity.INFO,
                     actor_id: Optional[int] = None) -> DelegationEvent:
        return DelegationEvent(
            action=action,
            actor_id=context.member_id if actor_id is None else actor_id,
            owner_id=grant.owner_id,
            beneficiary_id=grant.beneficiary_id,
            family_id=family_id,
            request_id=grant.origin_request_id,
            grant_id=grant.id,
            scope=grant.scope,
            target_id=grant.target_id,
            permission_type=grant.permission_type,
            reason=reason,
            severity=severity,
            correlation_id=context.correlation_id,
        )
