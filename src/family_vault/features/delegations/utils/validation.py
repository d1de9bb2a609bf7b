"""Delegation validation utilities.

Rules raise ``ValueError`` so they can be reused both by the engine and by
Pydantic validators on the REST models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Type, TypeVar

from ....config.constants import DelegationLimits, DelegationScope
from ....core.exceptions import ValidationError
from ....utils.datetime import is_past, to_utc

E = TypeVar("E", bound=Enum)


class DelegationValidationRules:
    """Centralized validation rules for delegation data."""

    REASON_MAX_LENGTH = DelegationLimits.REASON_MAX_LENGTH
    COMMENT_MAX_LENGTH = DelegationLimits.COMMENT_MAX_LENGTH

    @staticmethod
    def validate_reason(reason: Optional[str], max_length: int = REASON_MAX_LENGTH) -> str:
        """Validate a request, rejection or revocation reason.

        Returns:
            The reason with surrounding whitespace removed

        Raises:
            ValueError: If the reason is blank or too long
        """
        if reason is None or not isinstance(reason, str) or not reason.strip():
            raise ValueError("Reason must not be blank")
        normalized = reason.strip()
        if len(normalized) > max_length:
            raise ValueError(f"Reason must be at most {max_length} characters")
        return normalized

    @staticmethod
    def validate_comment(comment: Optional[str], max_length: int = COMMENT_MAX_LENGTH) -> Optional[str]:
        """Validate an optional approval comment. Blank comments become ``None``."""
        if comment is None:
            return None
        if not isinstance(comment, str):
            raise ValueError("Comment must be text")
        if not comment.strip():
            return None
        normalized = comment.strip()
        if len(normalized) > max_length:
            raise ValueError(f"Comment must be at most {max_length} characters")
        return normalized

    @staticmethod
    def validate_target(scope: DelegationScope, target_id: Optional[int]) -> Optional[int]:
        """FULL_SPACE forbids a target; every other scope requires one."""
        if scope.requires_target:
            if target_id is None:
                raise ValueError(f"Scope {scope.value} requires a target id")
            if isinstance(target_id, bool) or not isinstance(target_id, int):
                raise ValueError("Target id must be an integer")
            if target_id <= 0:
                raise ValueError("Target id must be positive")
        elif target_id is not None:
            raise ValueError("FULL_SPACE delegations must not name a target")
        return target_id

    @staticmethod
    def validate_expiration(expiration_date: Optional[datetime],
                            now: Optional[datetime] = None) -> Optional[datetime]:
        """Normalize to UTC and reject dates already in the past."""
        if expiration_date is None:
            return None
        if not isinstance(expiration_date, datetime):
            raise ValueError("Expiration date must be a datetime")
        normalized = to_utc(expiration_date)
        if is_past(normalized, now):
            raise ValueError("Expiration date must not be in the past")
        return normalized

    @staticmethod
    def validate_distinct_members(owner_id: int, beneficiary_id: int) -> None:
        if owner_id == beneficiary_id:
            raise ValueError("Owner and beneficiary must be different members")


def validated(field: str, rule: Callable, *args) -> Any:
    """Apply a rule, converting its ``ValueError`` into ``ValidationError``."""
    try:
        return rule(*args)
    except ValueError as e:
        raise ValidationError(str(e), field=field)


def parse_enum(enum_type: Type[E], value: Any, field: str) -> E:
    """Coerce ``value`` into ``enum_type`` or raise ``ValidationError``."""
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"Invalid {field} '{value}', expected one of: {allowed}", field=field)
