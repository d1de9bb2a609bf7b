"""Tests for DatabaseManager transaction binding and schema setup."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from family_vault.core.exceptions import ConnectionError, TransactionError
from family_vault.database import DatabaseManager, init_schema


class FakeConnection:
    """asyncpg connection stand-in recording transactions."""

    def __init__(self, name):
        self.name = name
        self.fetchrow = AsyncMock(return_value={"connection": name})
        self.fetchval = AsyncMock(return_value=1)
        self.execute = AsyncMock(return_value="OK")
        self.committed = 0
        self.rolled_back = 0

    @asynccontextmanager
    async def transaction(self):
        try:
            yield
        except BaseException:
            self.rolled_back += 1
            raise
        else:
            self.committed += 1


class FakePool:
    """Pool handing out a fresh connection per acquire."""

    def __init__(self):
        self.acquired = []

    @asynccontextmanager
    async def acquire(self):
        connection = FakeConnection(f"conn-{len(self.acquired) + 1}")
        self.acquired.append(connection)
        yield connection

    async def close(self):
        pass


@pytest.fixture
def database():
    db = DatabaseManager("postgresql+asyncpg://localhost/vault")
    db.pool = FakePool()
    return db


class TestDatabaseManager:
    """Connection reuse inside transactions."""

    def test_dsn_drops_driver_suffix(self, database):
        assert database.dsn == "postgresql://localhost/vault"

    @pytest.mark.asyncio
    async def test_queries_outside_transaction_use_own_connections(self, database):
        await database.fetchrow("SELECT 1")
        await database.fetchrow("SELECT 2")

        assert len(database.pool.acquired) == 2

    @pytest.mark.asyncio
    async def test_transaction_binds_connection(self, database):
        async with database.transaction() as connection:
            assert database.in_transaction
            row = await database.fetchrow("SELECT 1")
            async with database.transaction() as nested:
                assert nested is connection

        assert row == {"connection": connection.name}
        assert len(database.pool.acquired) == 1
        assert connection.committed == 1
        assert not database.in_transaction

    @pytest.mark.asyncio
    async def test_transaction_rolls_back(self, database):
        with pytest.raises(RuntimeError):
            async with database.transaction():
                raise RuntimeError("abort")

        assert database.pool.acquired[0].rolled_back == 1
        assert not database.in_transaction

    @pytest.mark.asyncio
    async def test_interface_error_becomes_transaction_error(self, database):
        with pytest.raises(TransactionError):
            async with database.transaction():
                raise asyncpg.InterfaceError("connection is closed")

    @pytest.mark.asyncio
    async def test_pool_creation_failure(self, monkeypatch):
        monkeypatch.setattr(asyncpg, "create_pool", AsyncMock(side_effect=OSError("refused")))
        db = DatabaseManager("postgresql://localhost/vault")

        with pytest.raises(ConnectionError):
            await db.create_pool()

    @pytest.mark.asyncio
    async def test_health_check(self, database):
        assert await database.health_check() is True

        broken = DatabaseManager("postgresql://localhost/vault")
        broken.pool = MagicMock()
        broken.pool.acquire.side_effect = OSError("down")
        assert await broken.health_check() is False


class TestInitSchema:
    """Schema DDL execution."""

    @pytest.mark.asyncio
    async def test_creates_schema_in_transaction(self, database):
        await init_schema(database, "vault_test")

        connection = database.pool.acquired[0]
        ddl = connection.execute.call_args.args[0]
        assert "CREATE SCHEMA IF NOT EXISTS vault_test" in ddl
        assert "vault_test.permission_grants" in ddl
        assert connection.committed == 1
