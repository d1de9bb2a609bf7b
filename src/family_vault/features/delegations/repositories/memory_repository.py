"""In-memory delegation store.

Every repository call runs under the store's ``asyncio.Lock``. A
transaction holds the lock for its whole body, snapshots both tables on
entry and restores them if the body raises. Entities handed out are
copies, so callers cannot mutate stored state.
"""

import asyncio
import contextvars
import copy
import itertools
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime
from typing import Collection, Dict, List, Optional, Sequence

from ....config.constants import DelegationLimits, DelegationScope, PermissionType, RequestStatus
from ....core.exceptions import EntityAlreadyExistsError
from ..entities.delegation import DelegationRequest, PermissionGrant

logger = logging.getLogger(__name__)


# Stores whose lock the current task already holds through a transaction
_held_stores: contextvars.ContextVar[frozenset] = contextvars.ContextVar(
    "family_vault_memory_store_held", default=frozenset()
)


class InMemoryDelegationStore:
    """Delegation store keeping requests and grants in dictionaries."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._requests: Dict[int, DelegationRequest] = {}
        self._grants: Dict[int, PermissionGrant] = {}
        self._request_ids = itertools.count(1)
        self._grant_ids = itertools.count(1)
        self.requests = InMemoryDelegationRequestRepository(self)
        self.grants = InMemoryPermissionGrantRepository(self)

    @asynccontextmanager
    async def _guard(self):
        if id(self) in _held_stores.get():
            yield
            return
        async with self._lock:
            yield

    @asynccontextmanager
    async def transaction(self):
        if id(self) in _held_stores.get():
            yield
            return
        async with self._lock:
            token = _held_stores.set(_held_stores.get() | {id(self)})
            snapshot = (copy.deepcopy(self._requests), copy.deepcopy(self._grants))
            try:
                yield
            except BaseException:
                self._requests, self._grants = snapshot
                logger.debug("In-memory delegation transaction rolled back")
                raise
            finally:
                _held_stores.reset(token)


class InMemoryDelegationRequestRepository:
    """Request table of an ``InMemoryDelegationStore``."""

    def __init__(self, store: InMemoryDelegationStore):
        self._store = store

    def _select(self, predicate) -> List[DelegationRequest]:
        return [replace(r) for r in self._store._requests.values() if predicate(r)]

    async def create(self, request: DelegationRequest) -> DelegationRequest:
        async with self._store._guard():
            stored = replace(request, id=next(self._store._request_ids))
            self._store._requests[stored.id] = stored
            return replace(stored)

    async def find_by_id(self, request_id: int) -> Optional[DelegationRequest]:
        async with self._store._guard():
            found = self._store._requests.get(request_id)
            return replace(found) if found else None

    async def find_pending_duplicate(self, owner_id: int, beneficiary_id: int,
                                     scope: DelegationScope, target_id: Optional[int],
                                     permission_type: PermissionType) -> Optional[DelegationRequest]:
        async with self._store._guard():
            matches = self._select(
                lambda r: r.is_pending
                and r.owner_id == owner_id
                and r.key == (beneficiary_id, scope, target_id, permission_type)
            )
            return matches[0] if matches else None

    async def find_pending_by_owners(self, owner_ids: Sequence[int]) -> List[DelegationRequest]:
        owners = set(owner_ids)
        async with self._store._guard():
            pending = self._select(lambda r: r.is_pending and r.owner_id in owners)
        return sorted(pending, key=lambda r: (r.requested_at, r.id))

    async def find_by_owner(self, owner_id: int, status: Optional[RequestStatus] = None,
                            limit: Optional[int] = None) -> List[DelegationRequest]:
        async with self._store._guard():
            found = self._select(
                lambda r: r.owner_id == owner_id and (status is None or r.status is status)
            )
        found.sort(key=lambda r: (r.requested_at, r.id), reverse=True)
        return found[:limit or DelegationLimits.LIST_DEFAULT_LIMIT]

    async def find_by_beneficiary(self, beneficiary_id: int, status: Optional[RequestStatus] = None,
                                  limit: Optional[int] = None) -> List[DelegationRequest]:
        async with self._store._guard():
            found = self._select(
                lambda r: r.beneficiary_id == beneficiary_id and (status is None or r.status is status)
            )
        found.sort(key=lambda r: (r.requested_at, r.id), reverse=True)
        return found[:limit or DelegationLimits.LIST_DEFAULT_LIMIT]

    async def find_expired_pending(self, now: datetime) -> List[DelegationRequest]:
        async with self._store._guard():
            found = self._select(lambda r: r.is_pending and r.is_expired(now))
        return sorted(found, key=lambda r: r.id)

    async def resolve(self, request_id: int, status: RequestStatus, resolved_by: int,
                      resolved_at: datetime, comment: Optional[str]) -> Optional[DelegationRequest]:
        async with self._store._guard():
            stored = self._store._requests.get(request_id)
            if stored is None or not stored.is_pending:
                return None
            stored.resolve(status, resolved_by, resolved_at, comment)
            return replace(stored)

    async def mark_revoked(self, request_id: int) -> Optional[DelegationRequest]:
        async with self._store._guard():
            stored = self._store._requests.get(request_id)
            if stored is None or stored.status is not RequestStatus.APPROVED:
                return None
            stored.mark_revoked()
            return replace(stored)

    async def count_by_status(self, owner_ids: Optional[Sequence[int]] = None,
                              beneficiary_id: Optional[int] = None) -> Dict[RequestStatus, int]:
        owners = set(owner_ids) if owner_ids is not None else None
        counts = {status: 0 for status in RequestStatus}
        async with self._store._guard():
            for request in self._store._requests.values():
                if owners is not None and request.owner_id not in owners:
                    continue
                if beneficiary_id is not None and request.beneficiary_id != beneficiary_id:
                    continue
                counts[request.status] += 1
        return counts


class InMemoryPermissionGrantRepository:
    """Grant table of an ``InMemoryDelegationStore``."""

    def __init__(self, store: InMemoryDelegationStore):
        self._store = store

    def _select(self, predicate) -> List[PermissionGrant]:
        return [replace(g) for g in self._store._grants.values() if predicate(g)]

    async def create(self, grant: PermissionGrant) -> PermissionGrant:
        async with self._store._guard():
            if grant.active and any(
                g.active and g.key == grant.key for g in self._store._grants.values()
            ):
                raise EntityAlreadyExistsError("PermissionGrant", str(tuple(grant.key)))
            stored = replace(grant, id=next(self._store._grant_ids))
            self._store._grants[stored.id] = stored
            return replace(stored)

    async def find_by_id(self, grant_id: int) -> Optional[PermissionGrant]:
        async with self._store._guard():
            found = self._store._grants.get(grant_id)
            return replace(found) if found else None

    async def find_active_grant(self, beneficiary_id: int, scope: DelegationScope,
                                target_id: Optional[int],
                                permission_type: PermissionType) -> Optional[PermissionGrant]:
        key = (beneficiary_id, scope, target_id, permission_type)
        async with self._store._guard():
            matches = self._select(lambda g: g.active and g.key == key)
            return matches[0] if matches else None

    async def find_active_covering(self, beneficiary_id: int, scope: DelegationScope,
                                   target_id: Optional[int],
                                   permission_types: Collection[PermissionType]) -> List[PermissionGrant]:
        types = set(permission_types)
        async with self._store._guard():
            found = self._select(
                lambda g: g.active
                and g.beneficiary_id == beneficiary_id
                and g.scope is scope
                and g.target_id == target_id
                and g.permission_type in types
            )
        return sorted(found, key=lambda g: g.id)

    async def find_by_beneficiary(self, beneficiary_id: int, active_only: bool = True) -> List[PermissionGrant]:
        async with self._store._guard():
            found = self._select(
                lambda g: g.beneficiary_id == beneficiary_id and (g.active or not active_only)
            )
        return sorted(found, key=lambda g: (g.granted_at, g.id), reverse=True)

    async def find_by_owner(self, owner_id: int, active_only: bool = True) -> List[PermissionGrant]:
        async with self._store._guard():
            found = self._select(lambda g: g.owner_id == owner_id and (g.active or not active_only))
        return sorted(found, key=lambda g: (g.granted_at, g.id), reverse=True)

    async def find_expired_active(self, now: datetime) -> List[PermissionGrant]:
        async with self._store._guard():
            found = self._select(lambda g: g.active and g.is_expired(now))
        return sorted(found, key=lambda g: g.id)

    async def find_expiring_between(self, start: datetime, end: datetime,
                                    owner_id: Optional[int] = None,
                                    beneficiary_id: Optional[int] = None) -> List[PermissionGrant]:
        async with self._store._guard():
            found = self._select(
                lambda g: g.active
                and g.expiration_date is not None
                and start <= g.expiration_date <= end
                and (owner_id is None or g.owner_id == owner_id)
                and (beneficiary_id is None or g.beneficiary_id == beneficiary_id)
            )
        return sorted(found, key=lambda g: (g.expiration_date, g.id))

    async def deactivate(self, grant_id: int, revoked_by: int, reason: str,
                         revoked_at: datetime) -> Optional[PermissionGrant]:
        async with self._store._guard():
            stored = self._store._grants.get(grant_id)
            if stored is None or not stored.active:
                return None
            stored.deactivate(revoked_by, reason, revoked_at)
            return replace(stored)

    async def count_active(self, owner_ids: Optional[Sequence[int]] = None,
                           beneficiary_id: Optional[int] = None) -> int:
        owners = set(owner_ids) if owner_ids is not None else None
        async with self._store._guard():
            return sum(
                1 for g in self._store._grants.values()
                if g.active
                and (owners is None or g.owner_id in owners)
                and (beneficiary_id is None or g.beneficiary_id == beneficiary_id)
            )
