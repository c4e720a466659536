"""
Referral graph - referral counts, reward thresholds and unlock detection.

Signups point at their referrer by public referral code. The referrer's
referral_count is bumped once per referred signup at creation time, verified or not.
"""
import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import select, update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.models.signup import Signup
from waitlistpro.models.waitlist import Waitlist, Reward
from waitlistpro.services.errors import NotFound
from waitlistpro.services.notifications import send_notification
from waitlistpro.utils.logging import mask_email

logger = logging.getLogger(__name__)


async def find_signup_by_code(
    db: AsyncSession, waitlist_id: uuid.UUID, referral_code: Optional[str],
) -> Optional[Signup]:
    if not referral_code:
        return None
    result = await db.execute(
        select(Signup).where(
            and_(
                Signup.waitlist_id == waitlist_id,
                Signup.referral_code == referral_code,
            )
        ).limit(1).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def increment_referrer(
    db: AsyncSession, waitlist_id: uuid.UUID, referral_code: str,
) -> int:
    """
    Atomically add one to the referral_count of the signup owning referral_code.
    Returns the number of rows matched; 0 (stale or bogus code) is not an error.
    """
    result = await db.execute(
        update(Signup)
        .where(
            and_(
                Signup.waitlist_id == waitlist_id,
                Signup.referral_code == referral_code,
            )
        )
        .values(referral_count=Signup.referral_count + 1)
        .execution_options(synchronize_session=False)
    )
    matched = result.rowcount or 0
    if not matched:
        logger.debug(
            "Referral code %s matched no signup", referral_code,
            extra={"waitlist_id": str(waitlist_id)},
        )
    return matched


async def get_rewards(db: AsyncSession, waitlist_id: uuid.UUID) -> list[Reward]:
    """Reward tiers ascending by threshold."""
    result = await db.execute(
        select(Reward).where(Reward.waitlist_id == waitlist_id).order_by(Reward.threshold)
    )
    return list(result.scalars().all())


def unlocked_rewards(rewards: Sequence[Reward], referral_count: int) -> list[Reward]:
    return [r for r in rewards if r.threshold <= referral_count]


def next_reward(rewards: Sequence[Reward], referral_count: int) -> Optional[Reward]:
    """Smallest threshold still above referral_count."""
    candidates = [r for r in rewards if r.threshold > referral_count]
    return min(candidates, key=lambda r: r.threshold) if candidates else None


def find_newly_unlocked_reward(
    rewards: Sequence[Reward], new_count: int,
) -> Optional[Reward]:
    """First reward (ascending) whose threshold was crossed by the last +1."""
    for reward in sorted(rewards, key=lambda r: r.threshold):
        if new_count >= reward.threshold and new_count - 1 < reward.threshold:
            return reward
    return None


async def count_verified_referrals(
    db: AsyncSession, waitlist_id: uuid.UUID, referral_code: str,
) -> int:
    """Verified signups that joined through referral_code."""
    result = await db.execute(
        select(func.count()).select_from(Signup).where(
            and_(
                Signup.waitlist_id == waitlist_id,
                Signup.referred_by == referral_code,
                Signup.verified == True,  # noqa: E712
            )
        )
    )
    return result.scalar() or 0


async def record_verified_signup(
    db: AsyncSession, signup_id: uuid.UUID,
) -> Optional[Reward]:
    """
    Reward-unlock detection, run after a signup becomes verified.

    referral_count moves when a referred signup is created, so it cannot tell
    which verification crossed a threshold. The crossing is measured on the
    referrer's verified referrals instead: this verification took that number
    from new_count - 1 to new_count, and each signup verifies once, so every
    threshold is crossed by exactly one verification. Email failures are logged
    and never propagate.

    Returns the newly unlocked reward, or None.
    """
    signup = await db.get(Signup, signup_id)
    if signup is None:
        raise NotFound("Signup not found")
    if not signup.referred_by or not signup.verified:
        return None

    referrer = await find_signup_by_code(db, signup.waitlist_id, signup.referred_by)
    if referrer is None:
        return None

    new_count = await count_verified_referrals(db, signup.waitlist_id, signup.referred_by)
    rewards = await get_rewards(db, signup.waitlist_id)
    reward = find_newly_unlocked_reward(rewards, new_count)
    if reward is None:
        return None

    logger.info(
        "Reward unlocked for %s: %s (%d verified referrals)",
        mask_email(referrer.email), reward.title, new_count,
        extra={"waitlist_id": str(signup.waitlist_id), "signup_id": str(referrer.id)},
    )

    waitlist = await db.get(Waitlist, signup.waitlist_id)
    try:
        await send_notification(
            referrer.email,
            "reward_unlock",
            {
                "waitlist_name": waitlist.name if waitlist else "",
                "reward_title": reward.title,
                "reward_description": reward.description,
                "referral_count": new_count,
            },
        )
    except Exception as e:
        logger.warning("Reward notification failed: %s", str(e))

    return reward
