"""Audit log service.

Subscribes to the event bus and writes one entry per delegation event.
Write failures are logged here; they never reach the engine.
"""

import logging
from typing import Dict, List, Optional

from ....config.constants import DelegationLimits
from ...events.entities import DelegationEvent
from ..entities.audit_entry import AuditEntry
from ..entities.protocols import AuditRepository

logger = logging.getLogger(__name__)


class AuditLogService:
    """Event consumer persisting the audit trail, plus history views."""

    def __init__(self, repository: AuditRepository):
        self._repository = repository

    async def handle(self, event: DelegationEvent) -> None:
        await self.record(event)

    async def record(self, event: DelegationEvent) -> Optional[AuditEntry]:
        """Persist the entry for ``event``; returns ``None`` when the write failed."""
        entry = AuditEntry.from_event(event)
        try:
            saved = await self._repository.save(entry)
        except Exception as e:
            logger.error(f"Failed to write audit entry for {event.action.value} event {event.id}: {e}")
            return None
        logger.debug(f"Audit: {saved.description}")
        return saved

    async def history_for_actor(self, actor_id: int,
                                limit: int = DelegationLimits.LIST_DEFAULT_LIMIT) -> List[AuditEntry]:
        return await self._repository.find_by_actor(actor_id, limit)

    async def history_for_grant(self, grant_id: int) -> List[AuditEntry]:
        return await self._repository.find_by_permission(grant_id)

    async def history_for_beneficiary(self, beneficiary_id: int,
                                      limit: int = DelegationLimits.LIST_DEFAULT_LIMIT) -> List[AuditEntry]:
        return await self._repository.find_by_beneficiary(beneficiary_id, limit)

    async def recent(self, limit: int = DelegationLimits.LIST_DEFAULT_LIMIT) -> List[AuditEntry]:
        return await self._repository.find_recent(limit)

    async def history_for_member(self, member_id: int,
                                 limit: int = DelegationLimits.LIST_DEFAULT_LIMIT) -> List[AuditEntry]:
        """Entries the member performed or was the beneficiary of, newest first."""
        performed = await self._repository.find_by_actor(member_id, limit)
        received = await self._repository.find_by_beneficiary(member_id, limit)
        merged: Dict[int, AuditEntry] = {entry.id: entry for entry in performed + received}
        entries = sorted(merged.values(), key=lambda e: (e.timestamp, e.id), reverse=True)
        return entries[:limit]
