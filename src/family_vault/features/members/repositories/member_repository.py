"""Member directory adapters.

``DatabaseMemberDirectory`` reads the ``members`` table of the delegation
schema; ``InMemoryMemberDirectory`` backs tests and the demo application.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ....database import DatabaseManager, handle_storage_error
from ..entities.member import Member

logger = logging.getLogger(__name__)


MEMBER_GET_BY_ID = """
    SELECT id, family_id, is_admin, is_responsible
    FROM {schema}.members
    WHERE id = $1
"""

MEMBER_LIST_FAMILY_IDS = """
    SELECT id FROM {schema}.members
    WHERE family_id = $1
    ORDER BY id
"""

MEMBER_UPSERT = """
    INSERT INTO {schema}.members (id, family_id, is_admin, is_responsible)
    VALUES ($1, $2, $3, $4)
    ON CONFLICT (id) DO UPDATE SET
        family_id = EXCLUDED.family_id,
        is_admin = EXCLUDED.is_admin,
        is_responsible = EXCLUDED.is_responsible
"""


class DatabaseMemberDirectory:
    """Member directory backed by PostgreSQL."""

    def __init__(self, db: DatabaseManager, schema: str):
        self._db = db
        self._schema = schema

    @handle_storage_error("load member")
    async def get_member(self, member_id: int) -> Optional[Member]:
        row = await self._db.fetchrow(MEMBER_GET_BY_ID.format(schema=self._schema), member_id)
        if row is None:
            return None
        return Member(
            id=row["id"],
            family_id=row["family_id"],
            is_admin=row["is_admin"],
            is_responsible=row["is_responsible"],
        )

    @handle_storage_error("list family members")
    async def list_family_member_ids(self, family_id: int) -> List[int]:
        rows = await self._db.fetch(MEMBER_LIST_FAMILY_IDS.format(schema=self._schema), family_id)
        return [row["id"] for row in rows]

    @handle_storage_error("save member")
    async def upsert(self, member: Member) -> Member:
        """Mirror a member from the identity system."""
        await self._db.execute(
            MEMBER_UPSERT.format(schema=self._schema),
            member.id, member.family_id, member.is_admin, member.is_responsible,
        )
        return member


class InMemoryMemberDirectory:
    """Dictionary-backed member directory."""

    def __init__(self, members: Optional[Iterable[Member]] = None):
        self._members: Dict[int, Member] = {m.id: m for m in (members or [])}

    def add(self, member: Member) -> Member:
        self._members[member.id] = member
        return member

    async def get_member(self, member_id: int) -> Optional[Member]:
        return self._members.get(member_id)

    async def list_family_member_ids(self, family_id: int) -> List[int]:
        return sorted(m.id for m in self._members.values() if m.family_id == family_id)
