"""Storage-related exceptions for family-vault."""

from .base import FamilyVaultError


class DatabaseError(FamilyVaultError):
    """Base class for storage errors."""
    pass


class ConnectionError(DatabaseError):
    """Raised when the storage backend cannot be reached."""
    pass


class TransactionError(DatabaseError):
    """Raised when a transaction fails to commit or roll back."""
    pass


class EntityAlreadyExistsError(DatabaseError):
    """Raised when a write violates a uniqueness constraint."""

    def __init__(self, entity_type: str, key: str):
        self.entity_type = entity_type
        self.key = key
        super().__init__(
            f"{entity_type} already exists: {key}",
            details={"entity_type": entity_type, "key": key},
        )
