"""Configuration module for family-vault."""

from .constants import (
    DelegationScope,
    PermissionType,
    RequestStatus,
    DelegationAction,
    AuditAction,
    AuditSeverity,
    DashboardScope,
    DelegationLimits,
    CacheKeys,
    DatabaseSchemas,
)
from .logging_config import (
    setup_logging,
    LogVerbosity,
    LogFormat,
    LoggingConfig,
)
from .settings import VaultSettings, get_settings

__all__ = [
    # Enums and constants
    "DelegationScope",
    "PermissionType",
    "RequestStatus",
    "DelegationAction",
    "AuditAction",
    "AuditSeverity",
    "DashboardScope",
    "DelegationLimits",
    "CacheKeys",
    "DatabaseSchemas",

    # Logging
    "setup_logging",
    "LogVerbosity",
    "LogFormat",
    "LoggingConfig",

    # Settings
    "VaultSettings",
    "get_settings",
]
