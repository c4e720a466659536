"""
Tests for waitlistpro/services/waitlists.py - creation, settings, rewards, public lookups.
"""
import uuid
import pytest

from conftest import make_reward, make_signup
from waitlistpro.services.errors import Conflict, NotFound, ValidationFailed
from waitlistpro.services.waitlists import (
    _base36,
    add_reward,
    create_waitlist,
    get_owned_waitlist,
    get_position,
    get_public_info,
    list_owner_waitlists,
    slugify,
    update_waitlist,
    waitlist_to_dict,
)


class TestSlugify:
    def test_basic(self):
        assert slugify("My Cool App") == "my-cool-app"

    def test_collapses_symbols(self):
        assert slugify("  Launch!!  2.0 -- Beta ") == "launch-2-0-beta"

    def test_base36(self):
        assert _base36(0) == "0"
        assert _base36(35) == "z"
        assert _base36(36) == "10"


class TestCreateWaitlist:
    async def test_defaults(self, db, owner):
        waitlist = await create_waitlist(db, owner.id, "Rocket Notes", "Notes that launch")
        assert waitlist.slug == "rocket-notes"
        assert waitlist.settings["buttonText"] == "Join Waitlist"
        assert waitlist.settings["showCount"] is True

    async def test_slug_collision_gets_suffix(self, db, owner):
        first = await create_waitlist(db, owner.id, "Rocket Notes")
        second = await create_waitlist(db, owner.id, "Rocket Notes")
        assert first.slug == "rocket-notes"
        assert second.slug.startswith("rocket-notes-")
        assert second.slug != first.slug

    async def test_short_name_rejected(self, db, owner):
        with pytest.raises(ValidationFailed):
            await create_waitlist(db, owner.id, "X")

    async def test_symbol_only_name_rejected(self, db, owner):
        with pytest.raises(ValidationFailed):
            await create_waitlist(db, owner.id, "!!!")


class TestOwnership:
    async def test_owner_can_load(self, db, waitlist, owner):
        loaded = await get_owned_waitlist(db, waitlist.id, owner.id)
        assert loaded.id == waitlist.id

    async def test_other_owner_sees_not_found(self, db, waitlist):
        with pytest.raises(NotFound):
            await get_owned_waitlist(db, waitlist.id, uuid.uuid4())

    async def test_list_with_counts(self, db, waitlist, owner):
        await make_signup(db, waitlist, 1, verified=True)
        await make_signup(db, waitlist, 2)
        items = await list_owner_waitlists(db, owner.id)
        assert len(items) == 1
        assert items[0]["slug"] == "acme-beta"
        assert items[0]["totalSignups"] == 2
        assert items[0]["verifiedSignups"] == 1


class TestUpdateAndRewards:
    async def test_settings_shallow_merge(self, db, waitlist):
        await update_waitlist(db, waitlist, settings={"primaryColor": "#000000"})
        assert waitlist.settings["primaryColor"] == "#000000"
        assert waitlist.settings["buttonText"] == "Join Waitlist"

    async def test_description_update(self, db, waitlist):
        await update_waitlist(db, waitlist, description="New copy")
        assert waitlist.description == "New copy"

    async def test_add_reward(self, db, waitlist):
        reward = await add_reward(db, waitlist, 3, " Early Access ", "Skip the line")
        assert reward.title == "Early Access"
        assert reward.threshold == 3

    async def test_duplicate_threshold(self, db, waitlist):
        await add_reward(db, waitlist, 3, "Early Access")
        with pytest.raises(Conflict):
            await add_reward(db, waitlist, 3, "Something else")

    async def test_threshold_must_be_positive(self, db, waitlist):
        with pytest.raises(ValidationFailed):
            await add_reward(db, waitlist, 0, "Free")

    async def test_to_dict_includes_rewards_when_given(self, db, waitlist):
        reward = await make_reward(db, waitlist, 5, title="Swag")
        data = waitlist_to_dict(waitlist, rewards=[reward])
        assert data["rewards"][0]["title"] == "Swag"
        assert "rewards" not in waitlist_to_dict(waitlist)


class TestPublicLookups:
    async def test_public_info(self, db, waitlist):
        await make_signup(db, waitlist, 1, verified=True)
        await make_signup(db, waitlist, 2)
        info = await get_public_info(db, "acme-beta")
        assert info["name"] == "Acme Beta"
        assert info["totalSignups"] == 2
        assert info["verifiedSignups"] == 1

    async def test_public_info_unknown_slug(self, db, waitlist):
        with pytest.raises(NotFound):
            await get_public_info(db, "missing")

    async def test_position_with_rewards(self, db, waitlist):
        for threshold in (1, 3, 5):
            await make_reward(db, waitlist, threshold)
        await make_signup(db, waitlist, 1, verified=True)
        await make_signup(db, waitlist, 2, referral_code="MINE0001", referral_count=3, verified=True)

        result = await get_position(db, "acme-beta", "MINE0001")
        assert result["position"] == 2
        assert result["totalSignups"] == 2
        assert result["referralCount"] == 3
        assert [r["threshold"] for r in result["unlockedRewards"]] == [1, 3]
        assert result["nextReward"] == {
            "title": "Reward at 5",
            "threshold": 5,
            "referralsNeeded": 2,
        }

    async def test_position_all_rewards_unlocked(self, db, waitlist):
        await make_reward(db, waitlist, 1)
        await make_signup(db, waitlist, 1, referral_code="MINE0001", referral_count=4)
        result = await get_position(db, "acme-beta", "MINE0001")
        assert result["nextReward"] is None

    async def test_position_requires_code(self, db, waitlist):
        with pytest.raises(ValidationFailed, match="Referral code required"):
            await get_position(db, "acme-beta", "")

    async def test_position_unknown_code(self, db, waitlist):
        with pytest.raises(NotFound, match="Position not found"):
            await get_position(db, "acme-beta", "NOPE0001")
