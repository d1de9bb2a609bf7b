"""Delegation event entity.

Events are the only channel from the engine to its consumers (audit log,
notifications, dashboard cache). They are immutable snapshots taken after
the mutation committed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from ....config.constants import AuditAction, AuditSeverity, DelegationScope, PermissionType
from ....utils.datetime import utc_now


@dataclass(frozen=True)
class DelegationEvent:
    """Something that happened to a delegation request or grant."""

    action: AuditAction
    actor_id: int
    owner_id: Optional[int] = None
    beneficiary_id: Optional[int] = None
    family_id: Optional[int] = None

    # Subject
    request_id: Optional[int] = None
    grant_id: Optional[int] = None
    scope: Optional[DelegationScope] = None
    target_id: Optional[int] = None
    permission_type: Optional[PermissionType] = None
    reason: Optional[str] = None

    severity: AuditSeverity = AuditSeverity.INFO
    correlation_id: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=utc_now)

    @property
    def target_label(self) -> str:
        if self.scope is None:
            return "unknown resource"
        if self.scope is DelegationScope.FULL_SPACE:
            return "the full space"
        return f"{self.scope.value} {self.target_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action.value,
            "actor_id": self.actor_id,
            "owner_id": self.owner_id,
            "beneficiary_id": self.beneficiary_id,
            "family_id": self.family_id,
            "request_id": self.request_id,
            "grant_id": self.grant_id,
            "scope": self.scope.value if self.scope else None,
            "target_id": self.target_id,
            "permission_type": self.permission_type.value if self.permission_type else None,
            "reason": self.reason,
            "severity": self.severity.value,
            "correlation_id": self.correlation_id,
            "occurred_at": self.occurred_at.isoformat(),
        }
