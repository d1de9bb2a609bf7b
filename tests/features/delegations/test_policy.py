"""Tests for the delegation policy."""

import pytest

from family_vault.config.constants import DelegationAction
from family_vault.core.exceptions import MemberNotFoundError, PermissionDeniedError
from family_vault.core.shared.context import ActorContext
from family_vault.features.delegations.services import DelegationPolicy, can_act
from family_vault.features.members import Member


OWNER = Member(id=1, family_id=1)
BENEFICIARY = Member(id=2, family_id=1)
ADMIN = Member(id=3, family_id=1, is_admin=True)
RESPONSIBLE = Member(id=4, family_id=1, is_responsible=True)
BYSTANDER = Member(id=7, family_id=1)
OUTSIDE_ADMIN = Member(id=6, family_id=2, is_admin=True)


# actor -> set of actions allowed on OWNER's resources with BENEFICIARY as beneficiary
EXPECTED = {
    OWNER: {
        DelegationAction.CREATE_REQUEST, DelegationAction.APPROVE, DelegationAction.REJECT,
        DelegationAction.REVOKE, DelegationAction.VIEW,
    },
    BENEFICIARY: {DelegationAction.CREATE_REQUEST, DelegationAction.REVOKE, DelegationAction.VIEW},
    ADMIN: set(DelegationAction),
    RESPONSIBLE: set(DelegationAction) - {DelegationAction.REVOKE},
    BYSTANDER: set(),
    OUTSIDE_ADMIN: set(),
}


class TestCanAct:
    """The full role by action matrix."""

    @pytest.mark.parametrize("member", list(EXPECTED), ids=lambda m: f"member-{m.id}")
    @pytest.mark.parametrize("action", list(DelegationAction), ids=lambda a: a.value)
    def test_matrix(self, member, action):
        assert can_act(member, OWNER, action, BENEFICIARY.id) is (action in EXPECTED[member])

    def test_no_beneficiary_given(self):
        assert can_act(BENEFICIARY, OWNER, DelegationAction.VIEW) is False
        assert can_act(OWNER, OWNER, DelegationAction.VIEW) is True


class TestDelegationPolicy:
    """Member resolution and enforcement."""

    @pytest.mark.asyncio
    async def test_require_returns_actor_and_owner(self, directory):
        policy = DelegationPolicy(directory)

        actor, owner = await policy.require(ActorContext(member_id=3), DelegationAction.APPROVE, 1)

        assert actor.id == 3
        assert owner.id == 1

    @pytest.mark.asyncio
    async def test_require_denies(self, directory):
        policy = DelegationPolicy(directory)

        with pytest.raises(PermissionDeniedError) as exc_info:
            await policy.require(ActorContext(member_id=7), DelegationAction.APPROVE, 1)

        assert exc_info.value.details["action"] == "approve"

    @pytest.mark.asyncio
    async def test_unknown_actor_is_denied(self, directory):
        policy = DelegationPolicy(directory)

        with pytest.raises(PermissionDeniedError):
            await policy.get_actor(ActorContext(member_id=999))

    @pytest.mark.asyncio
    async def test_unknown_owner_is_not_found(self, directory):
        policy = DelegationPolicy(directory)

        with pytest.raises(MemberNotFoundError):
            await policy.require(ActorContext(member_id=3), DelegationAction.VIEW, 999)

    @pytest.mark.asyncio
    async def test_require_administrator(self, directory):
        policy = DelegationPolicy(directory)

        assert await policy.require_administrator(ActorContext.system()) is None
        assert (await policy.require_administrator(ActorContext(member_id=4))).id == 4
        with pytest.raises(PermissionDeniedError):
            await policy.require_administrator(ActorContext(member_id=1))
