"""Database access layer for family-vault."""

from .connection import DatabaseManager
from .error_handling import handle_storage_error
from .schema import SCHEMA_DDL, init_schema

__all__ = [
    "DatabaseManager",
    "handle_storage_error",
    "SCHEMA_DDL",
    "init_schema",
]
