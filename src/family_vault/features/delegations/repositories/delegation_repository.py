"""PostgreSQL delegation repositories using asyncpg.

Both repositories go through ``DatabaseManager``, so calls made inside
``DatabaseDelegationStore.transaction()`` share its connection.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Collection, Dict, List, Optional, Sequence

import asyncpg

from ....config.constants import DelegationLimits, DelegationScope, PermissionType, RequestStatus
from ....core.exceptions import EntityAlreadyExistsError
from ....database import DatabaseManager, handle_storage_error
from ..entities.delegation import DelegationRequest, PermissionGrant
from ..utils.queries import (
    REQUEST_INSERT,
    REQUEST_GET_BY_ID,
    REQUEST_FIND_PENDING_DUPLICATE,
    REQUEST_FIND_PENDING_BY_OWNERS,
    REQUEST_FIND_BY_OWNER,
    REQUEST_FIND_BY_BENEFICIARY,
    REQUEST_FIND_EXPIRED_PENDING,
    REQUEST_RESOLVE,
    REQUEST_MARK_REVOKED,
    REQUEST_COUNT_BY_STATUS,
    GRANT_INSERT,
    GRANT_GET_BY_ID,
    GRANT_FIND_ACTIVE,
    GRANT_FIND_ACTIVE_COVERING,
    GRANT_FIND_BY_BENEFICIARY,
    GRANT_FIND_BY_OWNER,
    GRANT_FIND_EXPIRED_ACTIVE,
    GRANT_FIND_EXPIRING_BETWEEN,
    GRANT_DEACTIVATE,
    GRANT_COUNT_ACTIVE,
)

logger = logging.getLogger(__name__)


def _map_row_to_request(row) -> DelegationRequest:
    return DelegationRequest(
        id=row["id"],
        owner_id=row["owner_id"],
        beneficiary_id=row["beneficiary_id"],
        scope=DelegationScope(row["scope"]),
        target_id=row["target_id"],
        permission_type=PermissionType(row["permission_type"]),
        reason=row["reason"],
        requested_at=row["requested_at"],
        status=RequestStatus(row["status"]),
        resolved_by=row["resolved_by"],
        resolved_at=row["resolved_at"],
        resolution_comment=row["resolution_comment"],
        expiration_date=row["expiration_date"],
    )


def _map_row_to_grant(row) -> PermissionGrant:
    return PermissionGrant(
        id=row["id"],
        owner_id=row["owner_id"],
        beneficiary_id=row["beneficiary_id"],
        scope=DelegationScope(row["scope"]),
        target_id=row["target_id"],
        permission_type=PermissionType(row["permission_type"]),
        granted_at=row["granted_at"],
        expiration_date=row["expiration_date"],
        active=row["active"],
        origin_request_id=row["origin_request_id"],
        revoked_at=row["revoked_at"],
        revoked_by=row["revoked_by"],
        revocation_reason=row["revocation_reason"],
    )


class DatabaseDelegationRequestRepository:
    """Delegation request repository backed by PostgreSQL."""

    def __init__(self, db: DatabaseManager, schema: str):
        self._db = db
        self._schema = schema

    def _query(self, template: str) -> str:
        return template.format(schema=self._schema)

    @handle_storage_error("create delegation request")
    async def create(self, request: DelegationRequest) -> DelegationRequest:
        row = await self._db.fetchrow(
            self._query(REQUEST_INSERT),
            request.owner_id, request.beneficiary_id, request.scope.value, request.target_id,
            request.permission_type.value, request.reason, request.requested_at,
            request.status.value, request.expiration_date,
        )
        created = _map_row_to_request(row)
        logger.info(f"Created delegation request {created.id}")
        return created

    @handle_storage_error("find delegation request")
    async def find_by_id(self, request_id: int) -> Optional[DelegationRequest]:
        row = await self._db.fetchrow(self._query(REQUEST_GET_BY_ID), request_id)
        return _map_row_to_request(row) if row else None

    @handle_storage_error("find pending duplicate")
    async def find_pending_duplicate(self, owner_id: int, beneficiary_id: int,
                                     scope: DelegationScope, target_id: Optional[int],
                                     permission_type: PermissionType) -> Optional[DelegationRequest]:
        row = await self._db.fetchrow(
            self._query(REQUEST_FIND_PENDING_DUPLICATE),
            owner_id, beneficiary_id, scope.value, target_id, permission_type.value,
        )
        return _map_row_to_request(row) if row else None

    @handle_storage_error("list pending requests")
    async def find_pending_by_owners(self, owner_ids: Sequence[int]) -> List[DelegationRequest]:
        rows = await self._db.fetch(self._query(REQUEST_FIND_PENDING_BY_OWNERS), list(owner_ids))
        return [_map_row_to_request(row) for row in rows]

    @handle_storage_error("list requests by owner")
    async def find_by_owner(self, owner_id: int, status: Optional[RequestStatus] = None,
                            limit: Optional[int] = None) -> List[DelegationRequest]:
        rows = await self._db.fetch(
            self._query(REQUEST_FIND_BY_OWNER),
            owner_id, status.value if status else None, limit or DelegationLimits.LIST_DEFAULT_LIMIT,
        )
        return [_map_row_to_request(row) for row in rows]

    @handle_storage_error("list requests by beneficiary")
    async def find_by_beneficiary(self, beneficiary_id: int, status: Optional[RequestStatus] = None,
                                  limit: Optional[int] = None) -> List[DelegationRequest]:
        rows = await self._db.fetch(
            self._query(REQUEST_FIND_BY_BENEFICIARY),
            beneficiary_id, status.value if status else None, limit or DelegationLimits.LIST_DEFAULT_LIMIT,
        )
        return [_map_row_to_request(row) for row in rows]

    @handle_storage_error("list expired pending requests")
    async def find_expired_pending(self, now: datetime) -> List[DelegationRequest]:
        rows = await self._db.fetch(self._query(REQUEST_FIND_EXPIRED_PENDING), now)
        return [_map_row_to_request(row) for row in rows]

    @handle_storage_error("resolve delegation request")
    async def resolve(self, request_id: int, status: RequestStatus, resolved_by: int,
                      resolved_at: datetime, comment: Optional[str]) -> Optional[DelegationRequest]:
        row = await self._db.fetchrow(
            self._query(REQUEST_RESOLVE), request_id, status.value, resolved_by, resolved_at, comment,
        )
        return _map_row_to_request(row) if row else None

    @handle_storage_error("mark delegation request revoked")
    async def mark_revoked(self, request_id: int) -> Optional[DelegationRequest]:
        row = await self._db.fetchrow(self._query(REQUEST_MARK_REVOKED), request_id)
        return _map_row_to_request(row) if row else None

    @handle_storage_error("count delegation requests")
    async def count_by_status(self, owner_ids: Optional[Sequence[int]] = None,
                              beneficiary_id: Optional[int] = None) -> Dict[RequestStatus, int]:
        rows = await self._db.fetch(
            self._query(REQUEST_COUNT_BY_STATUS),
            list(owner_ids) if owner_ids is not None else None, beneficiary_id,
        )
        counts = {status: 0 for status in RequestStatus}
        for row in rows:
            counts[RequestStatus(row["status"])] = row["total"]
        return counts


class DatabasePermissionGrantRepository:
    """Permission grant repository backed by PostgreSQL.

    The partial unique index on active grants turns a concurrent duplicate
    insert into ``EntityAlreadyExistsError``.
    """

    def __init__(self, db: DatabaseManager, schema: str):
        self._db = db
        self._schema = schema

    def _query(self, template: str) -> str:
        return template.format(schema=self._schema)

    @handle_storage_error("create permission grant")
    async def create(self, grant: PermissionGrant) -> PermissionGrant:
        try:
            row = await self._db.fetchrow(
                self._query(GRANT_INSERT),
                grant.owner_id, grant.beneficiary_id, grant.scope.value, grant.target_id,
                grant.permission_type.value, grant.granted_at, grant.expiration_date,
                grant.active, grant.origin_request_id,
            )
        except asyncpg.UniqueViolationError:
            raise EntityAlreadyExistsError("PermissionGrant", str(tuple(grant.key)))
        created = _map_row_to_grant(row)
        logger.info(f"Created permission grant {created.id} from request {created.origin_request_id}")
        return created

    @handle_storage_error("find permission grant")
    async def find_by_id(self, grant_id: int) -> Optional[PermissionGrant]:
        row = await self._db.fetchrow(self._query(GRANT_GET_BY_ID), grant_id)
        return _map_row_to_grant(row) if row else None

    @handle_storage_error("find active grant")
    async def find_active_grant(self, beneficiary_id: int, scope: DelegationScope,
                                target_id: Optional[int],
                                permission_type: PermissionType) -> Optional[PermissionGrant]:
        row = await self._db.fetchrow(
            self._query(GRANT_FIND_ACTIVE), beneficiary_id, scope.value, target_id, permission_type.value,
        )
        return _map_row_to_grant(row) if row else None

    @handle_storage_error("find covering grants")
    async def find_active_covering(self, beneficiary_id: int, scope: DelegationScope,
                                   target_id: Optional[int],
                                   permission_types: Collection[PermissionType]) -> List[PermissionGrant]:
        rows = await self._db.fetch(
            self._query(GRANT_FIND_ACTIVE_COVERING),
            beneficiary_id, scope.value, target_id, [p.value for p in permission_types],
        )
        return [_map_row_to_grant(row) for row in rows]

    @handle_storage_error("list grants by beneficiary")
    async def find_by_beneficiary(self, beneficiary_id: int, active_only: bool = True) -> List[PermissionGrant]:
        rows = await self._db.fetch(self._query(GRANT_FIND_BY_BENEFICIARY), beneficiary_id, active_only)
        return [_map_row_to_grant(row) for row in rows]

    @handle_storage_error("list grants by owner")
    async def find_by_owner(self, owner_id: int, active_only: bool = True) -> List[PermissionGrant]:
        rows = await self._db.fetch(self._query(GRANT_FIND_BY_OWNER), owner_id, active_only)
        return [_map_row_to_grant(row) for row in rows]

    @handle_storage_error("list expired grants")
    async def find_expired_active(self, now: datetime) -> List[PermissionGrant]:
        rows = await self._db.fetch(self._query(GRANT_FIND_EXPIRED_ACTIVE), now)
        return [_map_row_to_grant(row) for row in rows]

    @handle_storage_error("list expiring grants")
    async def find_expiring_between(self, start: datetime, end: datetime,
                                    owner_id: Optional[int] = None,
                                    beneficiary_id: Optional[int] = None) -> List[PermissionGrant]:
        rows = await self._db.fetch(
            self._query(GRANT_FIND_EXPIRING_BETWEEN), start, end, owner_id, beneficiary_id,
        )
        return [_map_row_to_grant(row) for row in rows]

    @handle_storage_error("deactivate permission grant")
    async def deactivate(self, grant_id: int, revoked_by: int, reason: str,
                         revoked_at: datetime) -> Optional[PermissionGrant]:
        row = await self._db.fetchrow(
            self._query(GRANT_DEACTIVATE), grant_id, revoked_by, reason, revoked_at,
        )
        return _map_row_to_grant(row) if row else None

    @handle_storage_error("count active grants")
    async def count_active(self, owner_ids: Optional[Sequence[int]] = None,
                           beneficiary_id: Optional[int] = None) -> int:
        return await self._db.fetchval(
            self._query(GRANT_COUNT_ACTIVE),
            list(owner_ids) if owner_ids is not None else None, beneficiary_id,
        )


class DatabaseDelegationStore:
    """Delegation store over a single ``DatabaseManager``."""

    def __init__(self, db: DatabaseManager, schema: str):
        self._db = db
        self.requests = DatabaseDelegationRequestRepository(db, schema)
        self.grants = DatabasePermissionGrantRepository(db, schema)

    @asynccontextmanager
    async def transaction(self):
        async with self._db.transaction():
            yield
