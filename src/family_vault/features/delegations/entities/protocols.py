"""Protocol interfaces for delegation persistence.

Conditional writes (``resolve``, ``mark_revoked``, ``deactivate``) return
``None`` when the row is no longer in the expected state, which is how
concurrent callers learn they lost a race.
"""

from abc import abstractmethod
from datetime import datetime
from typing import (
    AsyncContextManager, Collection, Dict, List, Optional, Protocol, Sequence, runtime_checkable
)

from ....config.constants import DelegationScope, PermissionType, RequestStatus
from .delegation import DelegationRequest, PermissionGrant


@runtime_checkable
class DelegationRequestRepository(Protocol):
    """Protocol for delegation request persistence."""

    @abstractmethod
    async def create(self, request: DelegationRequest) -> DelegationRequest:
        """Persist a new request and return it with its id."""
        ...

    @abstractmethod
    async def find_by_id(self, request_id: int) -> Optional[DelegationRequest]:
        ...

    @abstractmethod
    async def find_pending_duplicate(self, owner_id: int, beneficiary_id: int,
                                     scope: DelegationScope, target_id: Optional[int],
                                     permission_type: PermissionType) -> Optional[DelegationRequest]:
        """Find a PENDING request for the identical tuple."""
        ...

    @abstractmethod
    async def find_pending_by_owners(self, owner_ids: Sequence[int]) -> List[DelegationRequest]:
        """Pending requests whose owner is one of ``owner_ids``, oldest first."""
        ...

    @abstractmethod
    async def find_by_owner(self, owner_id: int, status: Optional[RequestStatus] = None,
                            limit: Optional[int] = None) -> List[DelegationRequest]:
        ...

    @abstractmethod
    async def find_by_beneficiary(self, beneficiary_id: int, status: Optional[RequestStatus] = None,
                                  limit: Optional[int] = None) -> List[DelegationRequest]:
        ...

    @abstractmethod
    async def find_expired_pending(self, now: datetime) -> List[DelegationRequest]:
        """Pending requests whose expiration date is before ``now``."""
        ...

    @abstractmethod
    async def resolve(self, request_id: int, status: RequestStatus, resolved_by: int,
                      resolved_at: datetime, comment: Optional[str]) -> Optional[DelegationRequest]:
        """Move a PENDING request to ``status``; ``None`` if it is no longer pending."""
        ...

    @abstractmethod
    async def mark_revoked(self, request_id: int) -> Optional[DelegationRequest]:
        """Move an APPROVED request to REVOKED; ``None`` if it is not approved."""
        ...

    @abstractmethod
    async def count_by_status(self, owner_ids: Optional[Sequence[int]] = None,
                              beneficiary_id: Optional[int] = None) -> Dict[RequestStatus, int]:
        ...


@runtime_checkable
class PermissionGrantRepository(Protocol):
    """Protocol for permission grant persistence."""

    @abstractmethod
    async def create(self, grant: PermissionGrant) -> PermissionGrant:
        """Persist a grant.

        Raises ``EntityAlreadyExistsError`` when another active grant holds
        the same tuple.
        """
        ...

    @abstractmethod
    async def find_by_id(self, grant_id: int) -> Optional[PermissionGrant]:
        ...

    @abstractmethod
    async def find_active_grant(self, beneficiary_id: int, scope: DelegationScope,
                                target_id: Optional[int],
                                permission_type: PermissionType) -> Optional[PermissionGrant]:
        """Find the active grant for the exact tuple, expired or not."""
        ...

    @abstractmethod
    async def find_active_covering(self, beneficiary_id: int, scope: DelegationScope,
                                   target_id: Optional[int],
                                   permission_types: Collection[PermissionType]) -> List[PermissionGrant]:
        """Active grants on the tuple with any of ``permission_types``."""
        ...

    @abstractmethod
    async def find_by_beneficiary(self, beneficiary_id: int, active_only: bool = True) -> List[PermissionGrant]:
        ...

    @abstractmethod
    async def find_by_owner(self, owner_id: int, active_only: bool = True) -> List[PermissionGrant]:
        ...

    @abstractmethod
    async def find_expired_active(self, now: datetime) -> List[PermissionGrant]:
        ...

    @abstractmethod
    async def find_expiring_between(self, start: datetime, end: datetime,
                                    owner_id: Optional[int] = None,
                                    beneficiary_id: Optional[int] = None) -> List[PermissionGrant]:
        """Active grants expiring in ``[start, end]``."""
        ...

    @abstractmethod
    async def deactivate(self, grant_id: int, revoked_by: int, reason: str,
                         revoked_at: datetime) -> Optional[PermissionGrant]:
        """Deactivate an active grant; ``None`` if it is already inactive."""
        ...

    @abstractmethod
    async def count_active(self, owner_ids: Optional[Sequence[int]] = None,
                           beneficiary_id: Optional[int] = None) -> int:
        ...


@runtime_checkable
class DelegationStore(Protocol):
    """Both repositories plus a transaction spanning them."""

    requests: DelegationRequestRepository
    grants: PermissionGrantRepository

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """Run the enclosed repository calls atomically."""
        ...
