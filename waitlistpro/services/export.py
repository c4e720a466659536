"""
Signup export for waitlist owners, as CSV or JSON.
"""
import csv
import io
import uuid
from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.models.signup import Signup
from waitlistpro.services.errors import ValidationFailed
from waitlistpro.services.viral_metrics import as_utc

EXPORT_FILTERS = ("all", "verified", "unverified", "advocates")
EXPORT_FORMATS = ("csv", "json")

CSV_HEADERS = [
    "Email",
    "Position",
    "Verified",
    "Referral Code",
    "Referrals",
    "Referred By",
    "Engagement Score",
    "Signed Up",
    "Verified At",
    "Invited",
    "Invited At",
]


def _iso(value) -> Optional[str]:
    return as_utc(value).isoformat() if value else None


async def fetch_export_rows(
    db: AsyncSession, waitlist_id: uuid.UUID, filter: str = "all",
) -> list[Signup]:
    if filter not in EXPORT_FILTERS:
        raise ValidationFailed(f"filter must be one of: {', '.join(EXPORT_FILTERS)}")

    conditions = [Signup.waitlist_id == waitlist_id]
    if filter == "verified":
        conditions.append(Signup.verified == True)  # noqa: E712
    elif filter == "unverified":
        conditions.append(Signup.verified == False)  # noqa: E712
    elif filter == "advocates":
        conditions.append(Signup.referral_count > 0)

    result = await db.execute(
        select(Signup).where(and_(*conditions)).order_by(Signup.position.asc())
    )
    return list(result.scalars().all())


def signup_to_export_dict(signup: Signup) -> dict:
    return {
        "email": signup.email,
        "position": signup.position,
        "verified": signup.verified,
        "referralCode": signup.referral_code,
        "referralCount": signup.referral_count,
        "referredBy": signup.referred_by,
        "engagementScore": signup.engagement_score,
        "createdAt": _iso(signup.created_at),
        "verifiedAt": _iso(signup.verified_at),
        "invited": signup.invited,
        "invitedAt": _iso(signup.invited_at),
    }


def render_csv(signups: list[Signup]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADERS)
    for s in signups:
        writer.writerow([
            s.email,
            s.position,
            "Yes" if s.verified else "No",
            s.referral_code,
            s.referral_count,
            s.referred_by or "",
            s.engagement_score,
            _iso(s.created_at) or "",
            _iso(s.verified_at) or "",
            "Yes" if s.invited else "No",
            _iso(s.invited_at) or "",
        ])
    return buffer.getvalue()


async def export_signups(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    format: str = "csv",
    filter: str = "all",
):
    """CSV text, or a list of dicts for JSON."""
    if format not in EXPORT_FORMATS:
        raise ValidationFailed(f"format must be one of: {', '.join(EXPORT_FORMATS)}")
    signups = await fetch_export_rows(db, waitlist_id, filter)
    if format == "csv":
        return render_csv(signups)
    return [signup_to_export_dict(s) for s in signups]
