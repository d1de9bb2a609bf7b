"""Audit entry entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ....config.constants import AuditAction, AuditSeverity
from ....utils.datetime import utc_now
from ...events.entities import DelegationEvent


_DESCRIPTIONS = {
    AuditAction.DELEGATION_REQUESTED:
        "Member {actor} requested {permission} access to {target} of member {owner} for member {beneficiary}",
    AuditAction.DELEGATION_APPROVED:
        "Member {actor} approved request {request} giving member {beneficiary} {permission} access to {target}",
    AuditAction.DELEGATION_REJECTED:
        "Member {actor} rejected request {request} of member {beneficiary} for {target}",
    AuditAction.PERMISSION_GRANTED:
        "Grant {grant} gives member {beneficiary} {permission} access to {target} of member {owner}",
    AuditAction.PERMISSION_REVOKED:
        "Member {actor} revoked grant {grant} of member {beneficiary} on {target}",
    AuditAction.PERMISSION_EXPIRED:
        "Grant {grant} of member {beneficiary} on {target} expired",
    AuditAction.ACCESS_GRANTED:
        "Member {beneficiary} accessed {target} with {permission} permission",
    AuditAction.ACCESS_DENIED:
        "Member {beneficiary} was denied {permission} access to {target}",
}


def describe_event(event: DelegationEvent) -> str:
    """Render the audit description for an event."""
    description = _DESCRIPTIONS[event.action].format(
        actor=event.actor_id,
        owner=event.owner_id,
        beneficiary=event.beneficiary_id,
        request=event.request_id,
        grant=event.grant_id,
        permission=event.permission_type.value if event.permission_type else "unknown",
        target=event.target_label,
    )
    if event.reason:
        description = f"{description}: {event.reason}"
    return description


@dataclass
class AuditEntry:
    """One audited delegation action. Entries are append-only."""

    action: AuditAction
    actor_id: int
    description: str
    subject_permission_id: Optional[int] = None
    subject_beneficiary_id: Optional[int] = None
    subject_request_id: Optional[int] = None
    severity: AuditSeverity = AuditSeverity.INFO
    timestamp: datetime = field(default_factory=utc_now)
    id: Optional[int] = None

    @classmethod
    def from_event(cls, event: DelegationEvent) -> "AuditEntry":
        return cls(
            action=event.action,
            actor_id=event.actor_id,
            description=describe_event(event),
            subject_permission_id=event.grant_id,
            subject_beneficiary_id=event.beneficiary_id,
            subject_request_id=event.request_id,
            severity=event.severity,
            timestamp=event.occurred_at,
        )
