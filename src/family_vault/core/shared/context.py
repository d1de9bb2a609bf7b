"""Actor context entity.

Carries the identity of the member performing an engine call. It is
passed explicitly into every operation; there is no ambient session.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4


@dataclass(frozen=True)
class ActorContext:
    """Identity and request metadata for a single engine call."""

    member_id: int
    correlation_id: str = field(default_factory=lambda: str(uuid4()))
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def system(cls) -> "ActorContext":
        """Context for scheduled maintenance runs."""
        return cls(member_id=SYSTEM_ACTOR_ID, request_metadata={"source": "system"})

    @property
    def is_system(self) -> bool:
        return self.member_id == SYSTEM_ACTOR_ID

    def to_log_extra(self) -> Dict[str, Any]:
        """Fields attached to log records for this call."""
        return {
            "actor_id": self.member_id,
            "correlation_id": self.correlation_id,
        }


SYSTEM_ACTOR_ID = 0
