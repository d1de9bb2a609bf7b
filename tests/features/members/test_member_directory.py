"""Tests for member directories."""

import asyncpg
import pytest

from family_vault.core.exceptions import DatabaseError
from family_vault.features.members import DatabaseMemberDirectory, InMemoryMemberDirectory, Member


class TestMember:
    """Role helpers."""

    def test_family_manager(self):
        assert Member(id=1, family_id=1, is_admin=True).is_family_manager
        assert Member(id=2, family_id=1, is_responsible=True).is_family_manager
        assert not Member(id=3, family_id=1).is_family_manager

    def test_same_family(self):
        assert Member(id=1, family_id=1).same_family(Member(id=2, family_id=1))
        assert not Member(id=1, family_id=1).same_family(Member(id=3, family_id=2))


class TestInMemoryMemberDirectory:
    """Dictionary-backed directory."""

    @pytest.mark.asyncio
    async def test_lookup(self, directory):
        assert (await directory.get_member(3)).is_admin
        assert await directory.get_member(404) is None

    @pytest.mark.asyncio
    async def test_family_ids_sorted(self):
        directory = InMemoryMemberDirectory([Member(id=9, family_id=1), Member(id=4, family_id=1)])
        directory.add(Member(id=6, family_id=2))

        assert await directory.list_family_member_ids(1) == [4, 9]
        assert await directory.list_family_member_ids(2) == [6]


class TestDatabaseMemberDirectory:
    """PostgreSQL directory against a mocked DatabaseManager."""

    @pytest.mark.asyncio
    async def test_get_member(self, mock_database):
        mock_database.fetchrow.return_value = {"id": 3, "family_id": 1, "is_admin": True, "is_responsible": False}
        directory = DatabaseMemberDirectory(mock_database, "vault")

        member = await directory.get_member(3)

        assert member == Member(id=3, family_id=1, is_admin=True)
        assert "vault.members" in mock_database.fetchrow.call_args.args[0]

    @pytest.mark.asyncio
    async def test_list_family_member_ids(self, mock_database):
        mock_database.fetch.return_value = [{"id": 1}, {"id": 2}]
        directory = DatabaseMemberDirectory(mock_database, "vault")

        assert await directory.list_family_member_ids(1) == [1, 2]

    @pytest.mark.asyncio
    async def test_upsert(self, mock_database):
        directory = DatabaseMemberDirectory(mock_database, "vault")

        await directory.upsert(Member(id=5, family_id=2))

        assert mock_database.execute.call_args.args[1:] == (5, 2, False, False)

    @pytest.mark.asyncio
    async def test_storage_error(self, mock_database):
        mock_database.fetchrow.side_effect = asyncpg.InterfaceError("connection is closed")
        directory = DatabaseMemberDirectory(mock_database, "vault")

        with pytest.raises(DatabaseError):
            await directory.get_member(1)
