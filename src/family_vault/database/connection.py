"""
Database connection management using asyncpg for family-vault.

Transactions bind their connection to the current task through a context
variable, so repository calls made inside ``async with db.transaction()``
run on the same connection and commit or roll back together.
"""
import contextvars
import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

import asyncpg
from asyncpg import Pool, Connection, Record

from ..core.exceptions import ConnectionError, TransactionError

logger = logging.getLogger(__name__)


_transaction_connection: contextvars.ContextVar[Optional[Connection]] = contextvars.ContextVar(
    "family_vault_transaction_connection", default=None
)


class DatabaseManager:
    """Manages the asyncpg pool and transaction-bound connections."""

    def __init__(self, database_url: str, app_name: str = "family-vault", **pool_config):
        """Initialize DatabaseManager.

        Args:
            database_url: PostgreSQL DSN
            app_name: Reported to the server as application_name
            **pool_config: Additional pool configuration options
        """
        self.pool: Optional[Pool] = None
        self.dsn = database_url
        if "+asyncpg" in self.dsn:
            self.dsn = self.dsn.replace("+asyncpg", "")
        self.app_name = app_name

        # Pool configuration with sensible defaults
        self.pool_config = {
            "min_size": 2,
            "max_size": 10,
            "max_inactive_connection_lifetime": 300,
            "command_timeout": 30,
            **pool_config
        }

    async def create_pool(self) -> Pool:
        """Create and return a connection pool."""
        if self.pool is None:
            logger.info(f"Creating database pool with size {self.pool_config['max_size']}")
            try:
                self.pool = await asyncpg.create_pool(
                    self.dsn,
                    server_settings={"application_name": self.app_name},
                    **self.pool_config
                )
            except (OSError, asyncpg.PostgresError) as e:
                raise ConnectionError(f"Failed to create database pool: {e}")
            logger.info("Database pool created successfully")
        return self.pool

    async def close_pool(self) -> None:
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database pool closed")

    @property
    def in_transaction(self) -> bool:
        return _transaction_connection.get() is not None

    @asynccontextmanager
    async def acquire(self):
        """Acquire a connection, reusing the current transaction's one if any."""
        bound = _transaction_connection.get()
        if bound is not None:
            yield bound
            return

        if not self.pool:
            await self.create_pool()

        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self):
        """Open a transaction and bind its connection to the current task.

        Nested calls join the outer transaction.
        """
        bound = _transaction_connection.get()
        if bound is not None:
            yield bound
            return

        async with self.acquire() as connection:
            token = _transaction_connection.set(connection)
            try:
                async with connection.transaction():
                    yield connection
            except asyncpg.exceptions.InterfaceError as e:
                raise TransactionError(f"Transaction failed: {e}")
            finally:
                _transaction_connection.reset(token)

    async def execute(self, query: str, *args, timeout: float = None) -> str:
        """Execute a query without returning results."""
        async with self.acquire() as connection:
            return await connection.execute(query, *args, timeout=timeout)

    async def fetch(self, query: str, *args, timeout: float = None) -> List[Record]:
        """Fetch multiple rows."""
        async with self.acquire() as connection:
            return await connection.fetch(query, *args, timeout=timeout)

    async def fetchrow(self, query: str, *args, timeout: float = None) -> Optional[Record]:
        """Fetch a single row."""
        async with self.acquire() as connection:
            return await connection.fetchrow(query, *args, timeout=timeout)

    async def fetchval(self, query: str, *args, column: int = 0, timeout: float = None) -> Any:
        """Fetch a single value."""
        async with self.acquire() as connection:
            return await connection.fetchval(query, *args, column=column, timeout=timeout)

    async def health_check(self) -> bool:
        """Check database health."""
        try:
            async with self.acquire() as connection:
                result = await connection.fetchval("SELECT 1")
                return result == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
