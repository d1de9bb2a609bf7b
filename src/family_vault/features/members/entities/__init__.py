from .member import Member
from .protocols import MemberDirectory

__all__ = ["Member", "MemberDirectory"]
