"""Error handling utilities for storage operations.

Repositories wrap their coroutines with ``handle_storage_error`` so
driver exceptions surface as ``DatabaseError`` while family-vault errors
pass through untouched.
"""

import functools
import logging
from typing import Callable

import asyncpg

from ..core.exceptions import DatabaseError, FamilyVaultError

logger = logging.getLogger(__name__)


def handle_storage_error(operation_name: str) -> Callable:
    """Decorator converting driver failures into ``DatabaseError``.

    Usage:
        @handle_storage_error("find delegation request")
        async def find_by_id(self, request_id):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except FamilyVaultError:
                raise
            except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
                logger.error(f"Storage failure during {operation_name}: {e}")
                raise DatabaseError(
                    f"Failed to {operation_name}: {e}",
                    details={"operation": operation_name},
                ) from e
        return wrapper
    return decorator
