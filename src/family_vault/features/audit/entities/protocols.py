"""Protocol interfaces for audit persistence."""

from abc import abstractmethod
from typing import List, Protocol, runtime_checkable

from .audit_entry import AuditEntry


@runtime_checkable
class AuditRepository(Protocol):
    """Append-only store of audit entries. Queries return newest first."""

    @abstractmethod
    async def save(self, entry: AuditEntry) -> AuditEntry:
        ...

    @abstractmethod
    async def find_by_actor(self, actor_id: int, limit: int) -> List[AuditEntry]:
        ...

    @abstractmethod
    async def find_by_permission(self, grant_id: int) -> List[AuditEntry]:
        ...

    @abstractmethod
    async def find_by_beneficiary(self, beneficiary_id: int, limit: int) -> List[AuditEntry]:
        ...

    @abstractmethod
    async def find_recent(self, limit: int) -> List[AuditEntry]:
        ...
