"""Protocol interfaces for the membership provider."""

from abc import abstractmethod
from typing import List, Optional, Protocol, runtime_checkable

from .member import Member


@runtime_checkable
class MemberDirectory(Protocol):
    """Read-only access to family members and their roles."""

    @abstractmethod
    async def get_member(self, member_id: int) -> Optional[Member]:
        """Find a member by id."""
        ...

    @abstractmethod
    async def list_family_member_ids(self, family_id: int) -> List[int]:
        """List the ids of every member of a family."""
        ...
