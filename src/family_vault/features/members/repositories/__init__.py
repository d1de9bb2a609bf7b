from .member_repository import DatabaseMemberDirectory, InMemoryMemberDirectory

__all__ = ["DatabaseMemberDirectory", "InMemoryMemberDirectory"]
