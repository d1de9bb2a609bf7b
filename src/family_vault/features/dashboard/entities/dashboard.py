"""Dashboard view entities."""

from dataclasses import asdict, dataclass
from typing import Any, Dict

from ....config.constants import RequestStatus


@dataclass(frozen=True)
class DelegationCounts:
    """Request counts by status plus active grants, for one dashboard scope."""

    pending: int = 0
    approved: int = 0
    rejected: int = 0
    revoked: int = 0
    active_grants: int = 0

    @classmethod
    def from_status_counts(cls, counts: Dict[RequestStatus, int], active_grants: int) -> "DelegationCounts":
        return cls(
            pending=counts.get(RequestStatus.PENDING, 0),
            approved=counts.get(RequestStatus.APPROVED, 0),
            rejected=counts.get(RequestStatus.REJECTED, 0),
            revoked=counts.get(RequestStatus.REVOKED, 0),
            active_grants=active_grants,
        )

    @property
    def total_requests(self) -> int:
        return self.pending + self.approved + self.rejected + self.revoked

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DelegationCounts":
        return cls(**data)


@dataclass(frozen=True)
class MemberStatistics:
    """Delegation totals for one member, as owner and as beneficiary."""

    member_id: int
    total_owned_requests: int = 0
    total_beneficiary_requests: int = 0
    pending_owned_requests: int = 0
    pending_beneficiary_requests: int = 0
    active_owned_grants: int = 0
    active_beneficiary_grants: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemberStatistics":
        return cls(**data)
