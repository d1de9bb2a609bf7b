"""Service wiring.

Builds the engine and its consumers around either the in-memory adapters
or PostgreSQL/Redis, and returns them in a ``VaultServices`` container
with a start/stop lifecycle.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from ..config.settings import VaultSettings, get_settings
from ..database import DatabaseManager, init_schema
from ..features.audit import AuditLogService, DatabaseAuditRepository, InMemoryAuditRepository
from ..features.dashboard import (
    DashboardCache,
    DashboardService,
    MemoryDashboardCache,
    RedisDashboardCache,
)
from ..features.delegations import (
    DatabaseDelegationStore,
    DelegationAuthorizationService,
    DelegationStore,
    InMemoryDelegationStore,
)
from ..features.events import AsyncEventBus
from ..features.members import (
    DatabaseMemberDirectory,
    InMemoryMemberDirectory,
    Member,
    MemberDirectory,
)
from ..features.notifications import DelegationNotificationService
from ..utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass
class VaultServices:
    """Everything the REST surface and maintenance jobs need."""

    settings: VaultSettings
    members: MemberDirectory
    store: DelegationStore
    events: AsyncEventBus
    authorization: DelegationAuthorizationService
    audit: AuditLogService
    notifications: DelegationNotificationService
    dashboard: DashboardService
    cache: DashboardCache
    database: Optional[DatabaseManager] = None
    _closers: List[Callable[[], Any]] = field(default_factory=list, repr=False)

    async def start(self) -> None:
        if self.database is not None:
            await self.database.create_pool()
            await init_schema(self.database, self.settings.db_schema)
        await self.events.start()
        logger.info("Family vault services started")

    async def stop(self) -> None:
        await self.events.stop()
        for close in self._closers:
            await close()
        if self.database is not None:
            await self.database.close_pool()
        logger.info("Family vault services stopped")


def _assemble(settings: VaultSettings, members: MemberDirectory, store: DelegationStore,
              audit_repository, cache: DashboardCache,
              clock: Callable = utc_now) -> VaultServices:
    events = AsyncEventBus(max_queue_size=settings.event_queue_size)
    authorization = DelegationAuthorizationService(
        store,
        members,
        events,
        reason_max_length=settings.reason_max_length,
        expiring_soon_days=settings.expiring_soon_days,
        audit_access_denied=settings.audit_access_denied,
        clock=clock,
    )
    audit = AuditLogService(audit_repository)
    notifications = DelegationNotificationService()
    dashboard = DashboardService(store, members, cache, cache_ttl=settings.dashboard_cache_ttl)

    events.subscribe(dashboard, inline=True)
    events.subscribe(audit)
    events.subscribe(notifications)

    return VaultServices(
        settings=settings,
        members=members,
        store=store,
        events=events,
        authorization=authorization,
        audit=audit,
        notifications=notifications,
        dashboard=dashboard,
        cache=cache,
    )


def build_memory_services(members: Iterable[Member] = (), settings: Optional[VaultSettings] = None,
                          clock: Callable = utc_now) -> VaultServices:
    """Wire everything against in-memory adapters."""
    settings = settings or get_settings()
    return _assemble(
        settings,
        InMemoryMemberDirectory(members),
        InMemoryDelegationStore(),
        InMemoryAuditRepository(),
        MemoryDashboardCache(),
        clock,
    )


def build_database_services(settings: Optional[VaultSettings] = None) -> VaultServices:
    """Wire everything against PostgreSQL and, when configured, Redis."""
    settings = settings or get_settings()
    if not settings.database_url:
        raise ValueError("FAMILY_VAULT_DATABASE_URL is required for database services")

    db = DatabaseManager(
        settings.database_url,
        app_name=settings.app_name,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )
    schema = settings.db_schema
    closers: List[Callable[[], Any]] = []
    if settings.redis_url:
        redis_cache = RedisDashboardCache.from_url(settings.redis_url)
        closers.append(redis_cache.close)
        cache: DashboardCache = redis_cache
    else:
        cache = MemoryDashboardCache()

    services = _assemble(
        settings,
        DatabaseMemberDirectory(db, schema),
        DatabaseDelegationStore(db, schema),
        DatabaseAuditRepository(db, schema),
        cache,
    )
    services.database = db
    services._closers.extend(closers)
    return services


def build_services(settings: Optional[VaultSettings] = None) -> VaultServices:
    """Database services when a database URL is configured, in-memory otherwise."""
    settings = settings or get_settings()
    if settings.uses_database:
        return build_database_services(settings)
    logger.warning("No database configured, using in-memory delegation storage")
    return build_memory_services(settings=settings)
