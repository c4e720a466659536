"""
Waitlist management - creation, ownership checks, settings, reward tiers,
and the public info/position lookups.
"""
import logging
import re
import time
import uuid
from typing import Optional

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.models.signup import Signup
from waitlistpro.models.waitlist import Waitlist, Reward, DEFAULT_SETTINGS
from waitlistpro.services.errors import Conflict, NotFound, ValidationFailed
from waitlistpro.services.referrals import (
    find_signup_by_code,
    get_rewards,
    next_reward,
    unlocked_rewards,
)

logger = logging.getLogger(__name__)

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _SLUG_STRIP.sub("-", name.lower()).strip("-")


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while value:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
    return out or "0"


def reward_to_dict(reward: Reward) -> dict:
    return {
        "id": str(reward.id),
        "threshold": reward.threshold,
        "title": reward.title,
        "description": reward.description,
    }


def waitlist_to_dict(waitlist: Waitlist, rewards: Optional[list[Reward]] = None) -> dict:
    data = {
        "id": str(waitlist.id),
        "name": waitlist.name,
        "slug": waitlist.slug,
        "description": waitlist.description,
        "settings": waitlist.settings,
        "createdAt": waitlist.created_at.isoformat() if waitlist.created_at else None,
    }
    if rewards is not None:
        data["rewards"] = [reward_to_dict(r) for r in rewards]
    return data


async def count_signups(
    db: AsyncSession, waitlist_id: uuid.UUID, verified_only: bool = False,
) -> int:
    conditions = [Signup.waitlist_id == waitlist_id]
    if verified_only:
        conditions.append(Signup.verified == True)  # noqa: E712
    result = await db.execute(
        select(func.count()).select_from(Signup).where(and_(*conditions))
    )
    return result.scalar() or 0


async def get_waitlist_by_slug(db: AsyncSession, slug: str) -> Waitlist:
    result = await db.execute(select(Waitlist).where(Waitlist.slug == slug))
    waitlist = result.scalar_one_or_none()
    if waitlist is None:
        raise NotFound("Waitlist not found")
    return waitlist


async def get_owned_waitlist(
    db: AsyncSession, waitlist_id: uuid.UUID, owner_id: uuid.UUID,
) -> Waitlist:
    """Waitlist by id, only if owner_id owns it. Foreign waitlists look missing."""
    result = await db.execute(
        select(Waitlist).where(
            and_(Waitlist.id == waitlist_id, Waitlist.owner_id == owner_id)
        )
    )
    waitlist = result.scalar_one_or_none()
    if waitlist is None:
        raise NotFound("Waitlist not found")
    return waitlist


async def create_waitlist(
    db: AsyncSession,
    owner_id: uuid.UUID,
    name: str,
    description: Optional[str] = None,
) -> Waitlist:
    """Create a waitlist with default display settings and a unique slug."""
    name = (name or "").strip()
    if len(name) < 2:
        raise ValidationFailed("Name must be at least 2 characters")

    slug = slugify(name)
    if not slug:
        raise ValidationFailed("Name must contain letters or digits")

    existing = await db.execute(select(Waitlist.id).where(Waitlist.slug == slug))
    if existing.scalar_one_or_none() is not None:
        slug = f"{slug}-{_base36(int(time.time() * 1000))}"
        again = await db.execute(select(Waitlist.id).where(Waitlist.slug == slug))
        if again.scalar_one_or_none() is not None:
            raise Conflict("A waitlist with this name already exists")

    waitlist = Waitlist(
        owner_id=owner_id,
        name=name,
        slug=slug,
        description=description or None,
        settings=dict(DEFAULT_SETTINGS),
    )
    db.add(waitlist)
    await db.flush()

    logger.info("Waitlist created: %s", slug, extra={"waitlist_id": str(waitlist.id)})
    return waitlist


async def list_owner_waitlists(db: AsyncSession, owner_id: uuid.UUID) -> list[dict]:
    """Owner's waitlists, newest first, with total and verified counts."""
    result = await db.execute(
        select(Waitlist)
        .where(Waitlist.owner_id == owner_id)
        .order_by(Waitlist.created_at.desc())
    )
    waitlists = result.scalars().all()

    items = []
    for waitlist in waitlists:
        data = waitlist_to_dict(waitlist)
        data["totalSignups"] = await count_signups(db, waitlist.id)
        data["verifiedSignups"] = await count_signups(db, waitlist.id, verified_only=True)
        items.append(data)
    return items


async def update_waitlist(
    db: AsyncSession,
    waitlist: Waitlist,
    description: Optional[str] = None,
    settings: Optional[dict] = None,
) -> Waitlist:
    """Update description and shallow-merge display settings."""
    if description is not None:
        waitlist.description = description or None
    if settings:
        # New dict so the JSONB column is flagged dirty
        waitlist.settings = {**(waitlist.settings or {}), **settings}
    await db.flush()
    return waitlist


async def add_reward(
    db: AsyncSession,
    waitlist: Waitlist,
    threshold: int,
    title: str,
    description: Optional[str] = None,
) -> Reward:
    if threshold < 1:
        raise ValidationFailed("Reward threshold must be at least 1")
    if not (title or "").strip():
        raise ValidationFailed("Reward title is required")

    existing = await db.execute(
        select(Reward.id).where(
            and_(Reward.waitlist_id == waitlist.id, Reward.threshold == threshold)
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict(f"A reward at {threshold} referrals already exists")

    reward = Reward(
        waitlist_id=waitlist.id,
        threshold=threshold,
        title=title.strip(),
        description=description,
    )
    db.add(reward)
    await db.flush()
    return reward


async def get_public_info(db: AsyncSession, slug: str) -> dict:
    """What the signup widget needs to render."""
    waitlist = await get_waitlist_by_slug(db, slug)
    return {
        "name": waitlist.name,
        "slug": waitlist.slug,
        "description": waitlist.description,
        "settings": waitlist.settings,
        "totalSignups": await count_signups(db, waitlist.id),
        "verifiedSignups": await count_signups(db, waitlist.id, verified_only=True),
    }


async def get_position(db: AsyncSession, slug: str, referral_code: Optional[str]) -> dict:
    """Position, referral progress and reward milestones for one referral code."""
    if not referral_code:
        raise ValidationFailed("Referral code required")

    waitlist = await get_waitlist_by_slug(db, slug)
    signup = await find_signup_by_code(db, waitlist.id, referral_code)
    if signup is None:
        raise NotFound("Position not found")

    rewards = await get_rewards(db, waitlist.id)
    upcoming = next_reward(rewards, signup.referral_count)

    return {
        "position": signup.position,
        "totalSignups": await count_signups(db, waitlist.id, verified_only=True),
        "referralCount": signup.referral_count,
        "referralCode": signup.referral_code,
        "verified": signup.verified,
        "unlockedRewards": [
            reward_to_dict(r) for r in unlocked_rewards(rewards, signup.referral_count)
        ],
        "nextReward": (
            {
                "title": upcoming.title,
                "threshold": upcoming.threshold,
                "referralsNeeded": upcoming.threshold - signup.referral_count,
            }
            if upcoming else None
        ),
    }
