"""
Launch-day batch invites.

Signups are invited one at a time. A failed send is recorded in the result
and the loop moves on; only successfully emailed signups are marked invited.
Each mark is written in its own savepoint, so one bad row cannot poison the
session for the rest of the batch.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, func, and_, case
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.models.analytics_event import AnalyticsEvent
from waitlistpro.models.signup import Signup
from waitlistpro.models.waitlist import Waitlist
from waitlistpro.services.errors import ValidationFailed
from waitlistpro.services.notifications import send_notification
from waitlistpro.utils.logging import mask_email

logger = logging.getLogger(__name__)

INVITE_FILTERS = ("top", "advocates")
MAX_BATCH_SIZE = 10000


async def select_invite_candidates(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    count: int,
    filter: str = "top",
    skip_already_invited: bool = True,
) -> list[Signup]:
    """Verified signups to invite, earliest position first or most referrals first."""
    conditions = [Signup.waitlist_id == waitlist_id, Signup.verified == True]  # noqa: E712
    if skip_already_invited:
        conditions.append(Signup.invited == False)  # noqa: E712

    if filter == "advocates":
        order = (Signup.referral_count.desc(), Signup.position.asc())
    else:
        order = (Signup.position.asc(),)

    result = await db.execute(
        select(Signup).where(and_(*conditions)).order_by(*order).limit(count)
    )
    return list(result.scalars().all())


async def run_batch_invite(
    db: AsyncSession,
    waitlist: Waitlist,
    count: int = 100,
    filter: str = "top",
    custom_message: Optional[str] = None,
    skip_already_invited: bool = True,
) -> dict:
    """
    Email launch invites to up to `count` verified signups.

    Returns:
        {"sent": int, "failed": int, "total": int, "errors": [str, ...]}
    """
    if filter not in INVITE_FILTERS:
        raise ValidationFailed(f"filter must be one of: {', '.join(INVITE_FILTERS)}")
    if count < 1 or count > MAX_BATCH_SIZE:
        raise ValidationFailed(f"count must be between 1 and {MAX_BATCH_SIZE}")

    candidates = await select_invite_candidates(
        db, waitlist.id, count, filter=filter, skip_already_invited=skip_already_invited,
    )

    sent = 0
    failed = 0
    errors: list[str] = []

    for signup in candidates:
        # a rolled-back savepoint expires the row it touched
        email, signup_id = signup.email, signup.id
        try:
            result = await send_notification(
                email,
                "invite",
                {"waitlist_name": waitlist.name, "custom_message": custom_message},
            )
            if result.get("status") != "sent":
                raise RuntimeError(result.get("error") or "send failed")

            async with db.begin_nested():
                signup.invited = True
                signup.invited_at = datetime.now(timezone.utc)
                db.add(AnalyticsEvent(
                    waitlist_id=waitlist.id,
                    event_type="invite",
                    signup_id=signup_id,
                    data={"batch": True},
                ))
                await db.flush()
            sent += 1
        except Exception as e:
            failed += 1
            errors.append(f"Failed to invite {email}: {e}")
            logger.warning(
                "Invite to %s failed: %s", mask_email(email), str(e),
                extra={"waitlist_id": str(waitlist.id), "signup_id": str(signup_id)},
            )

    logger.info(
        "Batch invite finished: %d sent, %d failed of %d", sent, failed, len(candidates),
        extra={"waitlist_id": str(waitlist.id)},
    )
    return {"sent": sent, "failed": failed, "total": len(candidates), "errors": errors}


async def get_invite_status(db: AsyncSession, waitlist_id: uuid.UUID) -> dict:
    result = await db.execute(
        select(
            func.count(Signup.id),
            func.coalesce(func.sum(case((Signup.invited == True, 1), else_=0)), 0),  # noqa: E712
        ).where(and_(Signup.waitlist_id == waitlist_id, Signup.verified == True))  # noqa: E712
    )
    total_verified, already_invited = (int(v or 0) for v in result.one())
    return {
        "totalVerified": total_verified,
        "alreadyInvited": already_invited,
        "remaining": total_verified - already_invited,
    }
