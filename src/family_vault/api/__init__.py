"""REST application and service wiring."""

from .factory import VaultServices, build_memory_services, build_database_services, build_services
from .app import create_app

__all__ = [
    "VaultServices",
    "build_memory_services",
    "build_database_services",
    "build_services",
    "create_app",
]
