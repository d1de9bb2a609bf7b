"""Error kind and HTTP status mapping for exceptions.

Exceptions are resolved by walking the class MRO, so subclasses inherit
the mapping of their closest mapped ancestor.
"""

from typing import Dict, Type

from ..shared.result import ErrorKind
from .base import FamilyVaultError
from .domain import (
    ValidationError,
    EntityNotFoundError,
    AuthorizationError,
    DuplicateDelegationError,
    AlreadyProcessedError,
    GrantExpiredError,
    ConfigurationError,
)
from .database import DatabaseError, EntityAlreadyExistsError


ERROR_KIND_MAP: Dict[Type[Exception], ErrorKind] = {
    ValidationError: ErrorKind.INVALID_INPUT,
    EntityNotFoundError: ErrorKind.NOT_FOUND,
    AuthorizationError: ErrorKind.PERMISSION_DENIED,
    DuplicateDelegationError: ErrorKind.ALREADY_EXISTS,
    EntityAlreadyExistsError: ErrorKind.ALREADY_EXISTS,
    AlreadyProcessedError: ErrorKind.ALREADY_PROCESSED,
    GrantExpiredError: ErrorKind.EXPIRED,
    ConfigurationError: ErrorKind.INTERNAL,
    DatabaseError: ErrorKind.INTERNAL,
}


HTTP_STATUS_MAP: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_INPUT: 422,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.ALREADY_EXISTS: 409,
    ErrorKind.ALREADY_PROCESSED: 409,
    ErrorKind.EXPIRED: 410,
    ErrorKind.INTERNAL: 500,
}


def error_kind_for(exception: BaseException) -> ErrorKind:
    """Get the error kind for an exception.

    Anything outside the family-vault hierarchy is an internal failure.
    """
    if not isinstance(exception, FamilyVaultError):
        return ErrorKind.INTERNAL

    for exc_class in type(exception).__mro__:
        if exc_class in ERROR_KIND_MAP:
            return ERROR_KIND_MAP[exc_class]

    return ErrorKind.INTERNAL


def get_http_status_code(kind: ErrorKind) -> int:
    """Get the HTTP status code for an error kind."""
    return HTTP_STATUS_MAP.get(kind, 500)
