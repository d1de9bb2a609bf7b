"""Typed outcome contract shared by every engine operation.

Engine operations never let validation, authorization or storage failures
escape as exceptions; they return ``Result.success(value)`` or
``Result.failure(kind, message)`` instead.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class ErrorKind(str, Enum):
    """Error taxonomy at the engine boundary."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    EXPIRED = "EXPIRED"
    INTERNAL = "INTERNAL"

    @property
    def is_retryable(self) -> bool:
        """Only internal failures may be retried by the caller."""
        return self is ErrorKind.INTERNAL


class ResultUnwrapError(RuntimeError):
    """Raised when unwrapping a failed result."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success value or typed error."""

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str,
                details: Optional[Dict[str, Any]] = None) -> "Result[T]":
        return cls(error=kind, message=message, details=details or {})

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value or raise ``ResultUnwrapError``."""
        if self.error is not None:
            raise ResultUnwrapError(self.error, self.message)
        return self.value

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        """Transform the success value, passing failures through untouched."""
        if self.error is not None:
            return Result(error=self.error, message=self.message, details=self.details)
        return Result.success(fn(self.value))

    def to_dict(self) -> Dict[str, Any]:
        if self.is_success:
            return {"success": True}
        return {
            "success": False,
            "error": {
                "code": self.error.value,
                "message": self.message,
                "details": self.details,
            },
        }
