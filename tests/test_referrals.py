"""
Tests for waitlistpro/services/referrals.py - referral counting and reward unlocks.
"""
import uuid
import pytest
from unittest.mock import AsyncMock, patch

from conftest import make_reward, make_signup
from waitlistpro.services.errors import NotFound
from waitlistpro.services.referrals import (
    find_newly_unlocked_reward,
    find_signup_by_code,
    get_rewards,
    increment_referrer,
    next_reward,
    record_verified_signup,
    unlocked_rewards,
)


class TestIncrementReferrer:
    async def test_increments_matching_signup(self, db, waitlist):
        referrer = await make_signup(db, waitlist, 1, referral_code="ALPHA001")
        matched = await increment_referrer(db, waitlist.id, "ALPHA001")
        assert matched == 1
        await db.refresh(referrer)
        assert referrer.referral_count == 1

    async def test_repeated_increments(self, db, waitlist):
        referrer = await make_signup(db, waitlist, 1, referral_code="ALPHA001")
        for _ in range(3):
            await increment_referrer(db, waitlist.id, "ALPHA001")
        await db.refresh(referrer)
        assert referrer.referral_count == 3

    async def test_unknown_code_is_a_noop(self, db, waitlist):
        """Zero matched rows is not an error."""
        other = await make_signup(db, waitlist, 1, referral_code="ALPHA001")
        matched = await increment_referrer(db, waitlist.id, "MISSING1")
        assert matched == 0
        await db.refresh(other)
        assert other.referral_count == 0

    async def test_scoped_to_waitlist(self, db, waitlist, owner):
        from waitlistpro.models.waitlist import Waitlist
        other_list = Waitlist(owner_id=owner.id, name="Other", slug="other", settings={})
        db.add(other_list)
        await db.flush()
        ours = await make_signup(db, waitlist, 1, referral_code="SHARED01")
        theirs = await make_signup(db, other_list, 1, referral_code="SHARED01",
                                   email="someone@else.com")

        await increment_referrer(db, waitlist.id, "SHARED01")
        await db.refresh(ours)
        await db.refresh(theirs)
        assert ours.referral_count == 1
        assert theirs.referral_count == 0


class TestRewardLookups:
    async def test_rewards_sorted_by_threshold(self, db, waitlist):
        await make_reward(db, waitlist, 10)
        await make_reward(db, waitlist, 1)
        await make_reward(db, waitlist, 5)
        rewards = await get_rewards(db, waitlist.id)
        assert [r.threshold for r in rewards] == [1, 5, 10]

    async def test_unlocked_and_next(self, db, waitlist):
        for t in (1, 3, 5):
            await make_reward(db, waitlist, t)
        rewards = await get_rewards(db, waitlist.id)

        assert [r.threshold for r in unlocked_rewards(rewards, 3)] == [1, 3]
        assert next_reward(rewards, 3).threshold == 5
        assert next_reward(rewards, 0).threshold == 1
        assert next_reward(rewards, 5) is None

    async def test_newly_unlocked_boundary(self, db, waitlist):
        await make_reward(db, waitlist, 3)
        rewards = await get_rewards(db, waitlist.id)
        assert find_newly_unlocked_reward(rewards, 3).threshold == 3
        assert find_newly_unlocked_reward(rewards, 2) is None
        assert find_newly_unlocked_reward(rewards, 4) is None

    async def test_find_by_code(self, db, waitlist):
        signup = await make_signup(db, waitlist, 1, referral_code="FINDME01")
        assert (await find_signup_by_code(db, waitlist.id, "FINDME01")).id == signup.id
        assert await find_signup_by_code(db, waitlist.id, "NOPE0001") is None
        assert await find_signup_by_code(db, waitlist.id, None) is None


class TestRecordVerifiedSignup:
    async def test_unlock_detected_once(self, db, waitlist, sent_ok):
        """The third verified referral unlocks the threshold-3 reward; the fourth unlocks nothing."""
        await make_reward(db, waitlist, 3, title="Early Access")
        referrer = await make_signup(db, waitlist, 1, referral_code="REFR0001",
                                     referral_count=4, verified=True)
        await make_signup(db, waitlist, 2, referred_by="REFR0001", verified=True)
        await make_signup(db, waitlist, 3, referred_by="REFR0001", verified=True)
        third = await make_signup(db, waitlist, 4, referred_by="REFR0001", verified=True)

        with patch(
            "waitlistpro.services.referrals.send_notification",
            new_callable=AsyncMock, return_value=sent_ok,
        ) as mock_send:
            reward = await record_verified_signup(db, third.id)

            assert reward is not None
            assert reward.title == "Early Access"
            mock_send.assert_awaited_once()
            args = mock_send.call_args.args
            assert args[0] == referrer.email
            assert args[1] == "reward_unlock"
            assert args[2]["reward_title"] == "Early Access"
            assert args[2]["referral_count"] == 3

            fourth = await make_signup(db, waitlist, 5, referred_by="REFR0001", verified=True)
            again = await record_verified_signup(db, fourth.id)

        assert again is None
        assert mock_send.await_count == 1

    async def test_unverified_referrals_do_not_count(self, db, waitlist):
        """referral_count already past the threshold; only one referral is verified."""
        await make_reward(db, waitlist, 2)
        await make_signup(db, waitlist, 1, referral_code="REFR0001", referral_count=3)
        await make_signup(db, waitlist, 2, referred_by="REFR0001")
        await make_signup(db, waitlist, 3, referred_by="REFR0001")
        verified = await make_signup(db, waitlist, 4, referred_by="REFR0001", verified=True)

        with patch("waitlistpro.services.referrals.send_notification", new_callable=AsyncMock) as mock_send:
            assert await record_verified_signup(db, verified.id) is None
        mock_send.assert_not_awaited()

    async def test_organic_signup_has_no_unlock(self, db, waitlist):
        await make_reward(db, waitlist, 1)
        signup = await make_signup(db, waitlist, 1, verified=True)
        with patch("waitlistpro.services.referrals.send_notification", new_callable=AsyncMock) as mock_send:
            assert await record_verified_signup(db, signup.id) is None
        mock_send.assert_not_awaited()

    async def test_dangling_referrer(self, db, waitlist):
        await make_reward(db, waitlist, 1)
        signup = await make_signup(db, waitlist, 1, referred_by="GONE0001", verified=True)
        assert await record_verified_signup(db, signup.id) is None

    async def test_notification_failure_does_not_raise(self, db, waitlist):
        await make_reward(db, waitlist, 1, title="Sticker Pack")
        await make_signup(db, waitlist, 1, referral_code="REFR0001", referral_count=1)
        signup = await make_signup(db, waitlist, 2, referred_by="REFR0001", verified=True)

        with patch(
            "waitlistpro.services.referrals.send_notification",
            new_callable=AsyncMock, side_effect=RuntimeError("mail down"),
        ):
            reward = await record_verified_signup(db, signup.id)
        assert reward.title == "Sticker Pack"

    async def test_missing_signup(self, db, waitlist):
        with pytest.raises(NotFound):
            await record_verified_signup(db, uuid.uuid4())
