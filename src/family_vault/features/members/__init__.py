"""Members feature: read-only view of family membership and roles."""

from .entities import Member, MemberDirectory
from .repositories import DatabaseMemberDirectory, InMemoryMemberDirectory

__all__ = [
    "Member",
    "MemberDirectory",
    "DatabaseMemberDirectory",
    "InMemoryMemberDirectory",
]
