"""Family member entity.

Members are owned by the identity/membership system; the delegation engine
only reads them to decide family membership and roles.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Member:
    """A family member as seen by the delegation engine."""

    id: int
    family_id: int
    is_admin: bool = False
    is_responsible: bool = False

    @property
    def is_family_manager(self) -> bool:
        """Admins and responsible members may manage delegations family-wide."""
        return self.is_admin or self.is_responsible

    def same_family(self, other: "Member") -> bool:
        return self.family_id == other.family_id
