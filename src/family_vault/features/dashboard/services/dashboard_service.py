"""Dashboard service.

Serves role-scoped delegation counts and per-member statistics, cached per
subject. The service also subscribes inline to the event bus and drops the
cached views of the owner, the beneficiary and the family an event
touched, so reads right after a mutation see it. A view computed while
its key was being invalidated is returned but not cached.
"""

import logging
from typing import List, Optional, Set

from ....config.constants import CacheKeys, DashboardScope, DelegationAction, RequestStatus
from ....core.shared.context import ActorContext
from ...delegations.entities.protocols import DelegationStore
from ...delegations.services.authorization_service import engine_operation
from ...delegations.services.policy import DelegationPolicy
from ...delegations.utils.validation import parse_enum
from ...events.entities import DelegationEvent
from ...members.entities import MemberDirectory
from ..entities.dashboard import DelegationCounts, MemberStatistics
from ..entities.protocols import DashboardCache

logger = logging.getLogger(__name__)


class DashboardService:
    """Read model over delegation state."""

    def __init__(self, store: DelegationStore, members: MemberDirectory,
                 cache: DashboardCache, cache_ttl: int = 300):
        self._store = store
        self._members = members
        self._policy = DelegationPolicy(members)
        self._cache = cache
        self._cache_ttl = cache_ttl

    @engine_operation("load dashboard counts")
    async def get_counts(self, context: ActorContext, scope: DashboardScope,
                         subject_id: Optional[int] = None) -> DelegationCounts:
        """Counts from the OWNER, BENEFICIARY or FAMILY perspective.

        ``subject_id`` defaults to the caller; FAMILY scope always uses the
        caller's family and requires an admin/responsible caller.
        """
        scope = parse_enum(DashboardScope, scope, "scope")
        actor = await self._policy.get_actor(context)

        if scope is DashboardScope.FAMILY:
            self._policy.check(actor, actor, DelegationAction.ADMINISTER)
            subject_id = actor.family_id
        else:
            subject_id = actor.id if subject_id is None else subject_id
            await self._policy.require(context, DelegationAction.VIEW, subject_id, subject_id)

        key = CacheKeys.DASHBOARD.format(scope=scope.value, subject_id=subject_id)
        generation = await self._cache.get_generation(key)
        cached = await self._cache.get(key)
        if cached is not None:
            return DelegationCounts.from_dict(cached)

        counts = await self._compute_counts(scope, subject_id)
        await self._cache.set_if_generation(key, counts.to_dict(), self._cache_ttl, generation)
        return counts

    @engine_operation("load member statistics")
    async def get_statistics(self, context: ActorContext,
                             member_id: Optional[int] = None) -> MemberStatistics:
        member_id = context.member_id if member_id is None else member_id
        await self._policy.require(context, DelegationAction.VIEW, member_id, member_id)

        key = CacheKeys.STATISTICS.format(member_id=member_id)
        generation = await self._cache.get_generation(key)
        cached = await self._cache.get(key)
        if cached is not None:
            return MemberStatistics.from_dict(cached)

        owned = await self._store.requests.count_by_status(owner_ids=[member_id])
        received = await self._store.requests.count_by_status(beneficiary_id=member_id)
        stats = MemberStatistics(
            member_id=member_id,
            total_owned_requests=sum(owned.values()),
            total_beneficiary_requests=sum(received.values()),
            pending_owned_requests=owned.get(RequestStatus.PENDING, 0),
            pending_beneficiary_requests=received.get(RequestStatus.PENDING, 0),
            active_owned_grants=await self._store.grants.count_active(owner_ids=[member_id]),
            active_beneficiary_grants=await self._store.grants.count_active(beneficiary_id=member_id),
        )
        await self._cache.set_if_generation(key, stats.to_dict(), self._cache_ttl, generation)
        return stats

    async def handle(self, event: DelegationEvent) -> None:
        """Invalidate the views touched by a state-changing event."""
        if not event.action.is_mutation:
            return
        keys = await self._keys_for(event)
        removed = await self._cache.delete_many(keys)
        logger.debug(f"Invalidated {removed} dashboard entries after {event.action.value}")

    async def _compute_counts(self, scope: DashboardScope, subject_id: int) -> DelegationCounts:
        if scope is DashboardScope.OWNER:
            status_counts = await self._store.requests.count_by_status(owner_ids=[subject_id])
            active = await self._store.grants.count_active(owner_ids=[subject_id])
        elif scope is DashboardScope.BENEFICIARY:
            status_counts = await self._store.requests.count_by_status(beneficiary_id=subject_id)
            active = await self._store.grants.count_active(beneficiary_id=subject_id)
        else:
            family = await self._members.list_family_member_ids(subject_id)
            status_counts = await self._store.requests.count_by_status(owner_ids=family)
            active = await self._store.grants.count_active(owner_ids=family)
        return DelegationCounts.from_status_counts(status_counts, active)

    async def _keys_for(self, event: DelegationEvent) -> List[str]:
        keys: Set[str] = set()
        for member_id in (event.owner_id, event.beneficiary_id):
            if member_id is None:
                continue
            keys.add(CacheKeys.STATISTICS.format(member_id=member_id))
            for scope in (DashboardScope.OWNER, DashboardScope.BENEFICIARY):
                keys.add(CacheKeys.DASHBOARD.format(scope=scope.value, subject_id=member_id))

        family_id = event.family_id
        if family_id is None and event.owner_id is not None:
            owner = await self._members.get_member(event.owner_id)
            family_id = owner.family_id if owner else None
        if family_id is not None:
            keys.add(CacheKeys.DASHBOARD.format(scope=DashboardScope.FAMILY.value, subject_id=family_id))
        return sorted(keys)
