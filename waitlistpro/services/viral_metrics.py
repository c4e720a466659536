"""
Viral metrics - K-factor, advocate ranking and growth series for the dashboard.

K-factor (viral coefficient) for a waitlist:
    K = sum(referral_count of verified signups) / count(verified signups)
K > 1 means each verified signup brings in more than one new signup.

Everything is recomputed from signup rows on each call. No cache, no derived tables.
"""
import logging
import math
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select, func, and_, case
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.config import get_settings
from waitlistpro.models.signup import Signup

logger = logging.getLogger(__name__)

TOP_REFERRERS_LIMIT = 10


def round_half_up(value: float, digits: int) -> float:
    """Round like Math.round(x * 10^d) / 10^d (halves go up, not to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every timestamp is written in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _verified():
    return Signup.verified == True  # noqa: E712


async def _kfactor_between(
    db: AsyncSession, waitlist_id: uuid.UUID, start: datetime, end: datetime,
) -> Optional[float]:
    """K-factor of signups created in [start, end). None when nobody verified in the window."""
    result = await db.execute(
        select(
            func.count(Signup.id),
            func.coalesce(func.sum(Signup.referral_count), 0),
        ).where(
            and_(
                Signup.waitlist_id == waitlist_id,
                _verified(),
                Signup.created_at >= start,
                Signup.created_at < end,
            )
        )
    )
    verified, referrals = result.one()
    if not verified:
        return None
    return referrals / verified


async def compute_kfactor_trend(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> str:
    """
    Compare the K-factor of the latest window to the window before it.
    "stable" when there is no baseline or the change is within tolerance.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    window = timedelta(days=settings.kfactor_trend_window_days)

    current = await _kfactor_between(db, waitlist_id, now - window, now)
    previous = await _kfactor_between(db, waitlist_id, now - 2 * window, now - window)

    if previous is None or current is None:
        return "stable"
    delta = current - previous
    if abs(delta) <= settings.kfactor_trend_tolerance:
        return "stable"
    return "up" if delta > 0 else "down"


async def compute_viral_metrics(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> dict:
    """Full metrics snapshot for one waitlist."""
    now = now or datetime.now(timezone.utc)
    one_day_ago = now - timedelta(days=1)
    seven_days_ago = now - timedelta(days=7)
    thirty_days_ago = now - timedelta(days=30)

    totals = await db.execute(
        select(
            func.count(Signup.id),
            func.coalesce(func.sum(case((_verified(), 1), else_=0)), 0),
            func.coalesce(func.sum(Signup.referral_count), 0),
            func.coalesce(func.sum(case((_verified(), Signup.referral_count), else_=0)), 0),
            func.coalesce(func.sum(case((Signup.referred_by.is_(None), 1), else_=0)), 0),
            func.coalesce(func.sum(case((Signup.created_at >= one_day_ago, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Signup.created_at >= seven_days_ago, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Signup.created_at >= thirty_days_ago, 1), else_=0)), 0),
        ).where(Signup.waitlist_id == waitlist_id)
    )
    (
        total_signups,
        verified_signups,
        total_referrals,
        verified_referrals,
        organic_signups,
        signups_last_24h,
        signups_last_7d,
        signups_last_30d,
    ) = (int(v or 0) for v in totals.one())
    referred_signups = total_signups - organic_signups

    top_result = await db.execute(
        select(Signup.email, Signup.referral_count, Signup.engagement_score)
        .where(and_(Signup.waitlist_id == waitlist_id, Signup.referral_count > 0))
        .order_by(Signup.referral_count.desc(), Signup.position.asc())
        .limit(TOP_REFERRERS_LIMIT)
    )
    top_referrers = [
        {"email": row[0], "referralCount": row[1], "engagementScore": row[2]}
        for row in top_result.all()
    ]

    verify_times = await db.execute(
        select(Signup.created_at, Signup.verified_at).where(
            and_(
                Signup.waitlist_id == waitlist_id,
                _verified(),
                Signup.verified_at.is_not(None),
            )
        )
    )
    durations = [
        (as_utc(verified_at) - as_utc(created_at)).total_seconds() / 60
        for created_at, verified_at in verify_times.all()
    ]
    avg_time_to_verify = (
        round_half_up(sum(durations) / len(durations), 1) if durations else None
    )

    k_factor = verified_referrals / verified_signups if verified_signups else 0
    avg_referrals = total_referrals / total_signups if total_signups else 0
    organic_pct = organic_signups / total_signups * 100 if total_signups else 0
    verification_rate = verified_signups / total_signups * 100 if total_signups else 0

    return {
        "kFactor": round_half_up(k_factor, 2),
        "kFactorTrend": await compute_kfactor_trend(db, waitlist_id, now=now),
        "totalSignups": total_signups,
        "verifiedSignups": verified_signups,
        "totalReferrals": total_referrals,
        "avgReferralsPerUser": round_half_up(avg_referrals, 2),
        "topReferrers": top_referrers,
        "organicSignups": organic_signups,
        "referredSignups": referred_signups,
        "organicPercentage": round_half_up(organic_pct, 1),
        "signupsLast24h": signups_last_24h,
        "signupsLast7d": signups_last_7d,
        "signupsLast30d": signups_last_30d,
        "verificationRate": round_half_up(verification_rate, 1),
        "avgTimeToVerify": avg_time_to_verify,
    }


async def compute_super_advocates(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    limit: int = 50,
) -> list[dict]:
    """
    Top referrers with their share of referrals. The share is relative to the
    returned set, not to every referral on the waitlist.
    """
    result = await db.execute(
        select(Signup)
        .where(and_(Signup.waitlist_id == waitlist_id, Signup.referral_count > 0))
        .order_by(Signup.referral_count.desc(), Signup.position.asc())
        .limit(limit)
    )
    advocates = result.scalars().all()
    returned_total = sum(s.referral_count for s in advocates)

    return [
        {
            "id": str(s.id),
            "email": s.email,
            "referralCount": s.referral_count,
            "engagementScore": s.engagement_score,
            "emailOpens": s.email_opens,
            "linkClicks": s.link_clicks,
            "createdAt": as_utc(s.created_at).isoformat() if s.created_at else None,
            "verified": s.verified,
            "contributionPercentage": (
                round_half_up(s.referral_count / returned_total * 100, 1)
                if returned_total > 0 else 0
            ),
        }
        for s in advocates
    ]


async def compute_daily_trend(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    days: int = 30,
    zero_fill: bool = False,
    now: Optional[datetime] = None,
) -> list[dict]:
    """
    Signups per UTC calendar day since midnight `days` days ago, split organic/referred.
    Days without signups are omitted unless zero_fill is set.
    """
    now = now or datetime.now(timezone.utc)
    start = datetime.combine(
        (now - timedelta(days=days)).date(), datetime.min.time(), tzinfo=timezone.utc
    )

    result = await db.execute(
        select(Signup.created_at, Signup.referred_by)
        .where(and_(Signup.waitlist_id == waitlist_id, Signup.created_at >= start))
        .order_by(Signup.created_at.asc())
    )

    daily: dict[str, dict] = {}
    if zero_fill:
        day = start.date()
        while day <= now.date():
            daily[day.isoformat()] = {"total": 0, "organic": 0, "referred": 0}
            day += timedelta(days=1)

    for created_at, referred_by in result.all():
        key = as_utc(created_at).date().isoformat()
        bucket = daily.setdefault(key, {"total": 0, "organic": 0, "referred": 0})
        bucket["total"] += 1
        if referred_by:
            bucket["referred"] += 1
        else:
            bucket["organic"] += 1

    return [{"date": date, **counts} for date, counts in sorted(daily.items())]
