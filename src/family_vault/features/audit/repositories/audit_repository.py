"""Audit repositories: PostgreSQL and in-memory."""

import asyncio
import itertools
import logging
from dataclasses import replace
from typing import List

from ....config.constants import AuditAction, AuditSeverity
from ....database import DatabaseManager, handle_storage_error
from ..entities.audit_entry import AuditEntry

logger = logging.getLogger(__name__)


AUDIT_COLUMNS = """
    id, action, actor_id, subject_permission_id, subject_beneficiary_id,
    subject_request_id, description, timestamp, severity
"""

AUDIT_INSERT = """
    INSERT INTO {schema}.audit_entries (
        action, actor_id, subject_permission_id, subject_beneficiary_id,
        subject_request_id, description, timestamp, severity
    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
    RETURNING id
"""

AUDIT_FIND_BY_ACTOR = "SELECT " + AUDIT_COLUMNS + """
    FROM {schema}.audit_entries
    WHERE actor_id = $1
    ORDER BY timestamp DESC, id DESC
    LIMIT $2
"""

AUDIT_FIND_BY_PERMISSION = "SELECT " + AUDIT_COLUMNS + """
    FROM {schema}.audit_entries
    WHERE subject_permission_id = $1
    ORDER BY timestamp DESC, id DESC
"""

AUDIT_FIND_BY_BENEFICIARY = "SELECT " + AUDIT_COLUMNS + """
    FROM {schema}.audit_entries
    WHERE subject_beneficiary_id = $1
    ORDER BY timestamp DESC, id DESC
    LIMIT $2
"""

AUDIT_FIND_RECENT = "SELECT " + AUDIT_COLUMNS + """
    FROM {schema}.audit_entries
    ORDER BY timestamp DESC, id DESC
    LIMIT $1
"""


def _map_row_to_entry(row) -> AuditEntry:
    return AuditEntry(
        id=row["id"],
        action=AuditAction(row["action"]),
        actor_id=row["actor_id"],
        subject_permission_id=row["subject_permission_id"],
        subject_beneficiary_id=row["subject_beneficiary_id"],
        subject_request_id=row["subject_request_id"],
        description=row["description"],
        timestamp=row["timestamp"],
        severity=AuditSeverity(row["severity"]),
    )


class DatabaseAuditRepository:
    """Audit repository backed by PostgreSQL."""

    def __init__(self, db: DatabaseManager, schema: str):
        self._db = db
        self._schema = schema

    @handle_storage_error("save audit entry")
    async def save(self, entry: AuditEntry) -> AuditEntry:
        entry_id = await self._db.fetchval(
            AUDIT_INSERT.format(schema=self._schema),
            entry.action.value, entry.actor_id, entry.subject_permission_id,
            entry.subject_beneficiary_id, entry.subject_request_id, entry.description,
            entry.timestamp, entry.severity.value,
        )
        return replace(entry, id=entry_id)

    @handle_storage_error("list audit entries by actor")
    async def find_by_actor(self, actor_id: int, limit: int) -> List[AuditEntry]:
        rows = await self._db.fetch(AUDIT_FIND_BY_ACTOR.format(schema=self._schema), actor_id, limit)
        return [_map_row_to_entry(row) for row in rows]

    @handle_storage_error("list audit entries by grant")
    async def find_by_permission(self, grant_id: int) -> List[AuditEntry]:
        rows = await self._db.fetch(AUDIT_FIND_BY_PERMISSION.format(schema=self._schema), grant_id)
        return [_map_row_to_entry(row) for row in rows]

    @handle_storage_error("list audit entries by beneficiary")
    async def find_by_beneficiary(self, beneficiary_id: int, limit: int) -> List[AuditEntry]:
        rows = await self._db.fetch(
            AUDIT_FIND_BY_BENEFICIARY.format(schema=self._schema), beneficiary_id, limit
        )
        return [_map_row_to_entry(row) for row in rows]

    @handle_storage_error("list recent audit entries")
    async def find_recent(self, limit: int) -> List[AuditEntry]:
        rows = await self._db.fetch(AUDIT_FIND_RECENT.format(schema=self._schema), limit)
        return [_map_row_to_entry(row) for row in rows]


class InMemoryAuditRepository:
    """List-backed audit repository."""

    def __init__(self):
        self._entries: List[AuditEntry] = []
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def save(self, entry: AuditEntry) -> AuditEntry:
        async with self._lock:
            stored = replace(entry, id=next(self._ids))
            self._entries.append(stored)
            return replace(stored)

    async def _newest_first(self, predicate, limit=None) -> List[AuditEntry]:
        async with self._lock:
            found = [replace(e) for e in self._entries if predicate(e)]
        found.sort(key=lambda e: (e.timestamp, e.id), reverse=True)
        return found[:limit] if limit is not None else found

    async def find_by_actor(self, actor_id: int, limit: int) -> List[AuditEntry]:
        return await self._newest_first(lambda e: e.actor_id == actor_id, limit)

    async def find_by_permission(self, grant_id: int) -> List[AuditEntry]:
        return await self._newest_first(lambda e: e.subject_permission_id == grant_id)

    async def find_by_beneficiary(self, beneficiary_id: int, limit: int) -> List[AuditEntry]:
        return await self._newest_first(lambda e: e.subject_beneficiary_id == beneficiary_id, limit)

    async def find_recent(self, limit: int) -> List[AuditEntry]:
        return await self._newest_first(lambda e: True, limit)
