"""Delegation policy.

``can_act`` is the single decision point for every role-gated delegation
action; ``DelegationPolicy`` resolves members through the directory and
raises when the decision is negative.
"""

import logging
from typing import Optional, Tuple

from ....config.constants import DelegationAction
from ....core.exceptions import MemberNotFoundError, PermissionDeniedError
from ....core.shared.context import ActorContext
from ...members.entities import Member, MemberDirectory

logger = logging.getLogger(__name__)


def can_act(actor: Member, owner: Member, action: DelegationAction,
            beneficiary_id: Optional[int] = None) -> bool:
    """Decide whether ``actor`` may perform ``action`` on ``owner``'s resources.

    Nobody acts across family boundaries. Within a family:

    - CREATE_REQUEST: the owner, the beneficiary, or an admin/responsible member
    - CREATE_FULL_SPACE: admin/responsible members only
    - APPROVE, REJECT: the owner, or an admin/responsible member
    - REVOKE: the owner, the beneficiary, or an admin
    - ADMINISTER: admin/responsible members
    - VIEW: the owner, the beneficiary, or an admin/responsible member
    """
    if not actor.same_family(owner):
        return False

    is_owner = actor.id == owner.id
    is_beneficiary = beneficiary_id is not None and actor.id == beneficiary_id

    if action is DelegationAction.CREATE_REQUEST:
        return is_owner or is_beneficiary or actor.is_family_manager
    if action is DelegationAction.CREATE_FULL_SPACE:
        return actor.is_family_manager
    if action in (DelegationAction.APPROVE, DelegationAction.REJECT):
        return is_owner or actor.is_family_manager
    if action is DelegationAction.REVOKE:
        return is_owner or is_beneficiary or actor.is_admin
    if action is DelegationAction.ADMINISTER:
        return actor.is_family_manager
    if action is DelegationAction.VIEW:
        return is_owner or is_beneficiary or actor.is_family_manager
    return False


class DelegationPolicy:
    """Resolves members and enforces ``can_act``."""

    def __init__(self, members: MemberDirectory):
        self._members = members

    async def get_member(self, member_id: int) -> Member:
        member = await self._members.get_member(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    async def get_actor(self, context: ActorContext) -> Member:
        """Resolve the calling member. Unknown callers are denied, not 'not found'."""
        actor = await self._members.get_member(context.member_id)
        if actor is None:
            logger.warning(f"Unknown member {context.member_id} attempted a delegation action")
            raise PermissionDeniedError(
                f"Member {context.member_id} is not known to the family vault",
                details={"actor_id": context.member_id},
            )
        return actor

    async def require(self, context: ActorContext, action: DelegationAction, owner_id: int,
                      beneficiary_id: Optional[int] = None) -> Tuple[Member, Member]:
        """Load actor and owner and check ``action``.

        Returns:
            The ``(actor, owner)`` pair

        Raises:
            MemberNotFoundError: If the owner does not exist
            PermissionDeniedError: If the actor may not perform ``action``
        """
        actor = await self.get_actor(context)
        owner = actor if actor.id == owner_id else await self.get_member(owner_id)
        self.check(actor, owner, action, beneficiary_id)
        return actor, owner

    def check(self, actor: Member, owner: Member, action: DelegationAction,
              beneficiary_id: Optional[int] = None) -> None:
        if not can_act(actor, owner, action, beneficiary_id):
            logger.info(
                f"Member {actor.id} denied {action.value} on resources of member {owner.id}"
            )
            raise PermissionDeniedError(
                f"Member {actor.id} may not {action.value.replace('_', ' ')} for member {owner.id}",
                details={"actor_id": actor.id, "owner_id": owner.id, "action": action.value},
            )

    async def require_administrator(self, context: ActorContext) -> Optional[Member]:
        """Allow maintenance runs for the system actor or a family manager.

        Returns ``None`` for the system actor.
        """
        if context.is_system:
            return None
        actor = await self.get_actor(context)
        self.check(actor, actor, DelegationAction.ADMINISTER)
        return actor

    async def family_member_ids(self, member: Member):
        return await self._members.list_family_member_ids(member.family_id)
