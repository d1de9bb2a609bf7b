"""Base exceptions for family-vault.

This module defines the root of the exception hierarchy. Every exception
carries an error code and structured details so it can be converted into
a typed ``Result`` failure.
"""

from typing import Any, Dict, Optional


class FamilyVaultError(Exception):
    """Base exception for all family-vault errors.

    All exceptions raised by the engine, repositories and adapters inherit
    from this class and include structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
