"""
Public signup flow - join a waitlist, then verify by emailed token.

register_signup: validate -> fraud checks -> dedupe -> assign position and codes ->
credit the referrer -> log event -> send verification email.
verify_signup: consume token -> log events -> reward-unlock check -> welcome email.

Emails are fire-and-forget: a failed send is logged and the signup still succeeds.
"""
import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.models.analytics_event import AnalyticsEvent
from waitlistpro.models.signup import Signup
from waitlistpro.models.waitlist import Waitlist
from waitlistpro.services.errors import Conflict, FraudRejected, NotFound, ValidationFailed
from waitlistpro.services.fraud_detection import evaluate_signup
from waitlistpro.services.notifications import send_notification
from waitlistpro.services.referrals import (
    find_signup_by_code,
    increment_referrer,
    record_verified_signup,
)
from waitlistpro.services.waitlists import count_signups, get_waitlist_by_slug
from waitlistpro.utils.email_validation import is_valid_email_format, normalize_email
from waitlistpro.utils.logging import mask_email

logger = logging.getLogger(__name__)

REFERRAL_CODE_LENGTH = 8
VERIFY_TOKEN_LENGTH = 32
MAX_CODE_ATTEMPTS = 10


def generate_referral_code() -> str:
    """Short URL-safe code, shared publicly in referral links."""
    return secrets.token_urlsafe(REFERRAL_CODE_LENGTH)[:REFERRAL_CODE_LENGTH]


def generate_verify_token() -> str:
    return secrets.token_urlsafe(VERIFY_TOKEN_LENGTH)[:VERIFY_TOKEN_LENGTH]


async def _unique_referral_code(db: AsyncSession, waitlist: Waitlist) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_referral_code()
        existing = await find_signup_by_code(db, waitlist.id, code)
        if existing is None:
            return code
    raise RuntimeError("Could not generate a unique referral code")


async def _send_verification(signup: Signup, waitlist: Waitlist) -> None:
    try:
        await send_notification(
            signup.email,
            "verification",
            {
                "waitlist_name": waitlist.name,
                "waitlist_slug": waitlist.slug,
                "verify_token": signup.verify_token,
            },
        )
    except Exception as e:
        logger.error("Failed to send verification email: %s", str(e))


async def register_signup(
    db: AsyncSession,
    slug: str,
    email: Optional[str],
    ref: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    referrer_url: Optional[str] = None,
) -> dict:
    """
    Add an email to a waitlist.

    Raises:
        ValidationFailed: malformed email
        NotFound: unknown slug
        FraudRejected: fraud score at or above the reject threshold
        Conflict: email already verified on this waitlist
    """
    email = normalize_email(email)
    if not email or not is_valid_email_format(email):
        raise ValidationFailed("Valid email required")
    ref = (ref or "").strip() or None

    waitlist = await get_waitlist_by_slug(db, slug)

    fraud = await evaluate_signup(db, waitlist.id, email, ip_address, ref)
    if not fraud.is_valid:
        raise FraudRejected(fraud)

    existing_result = await db.execute(
        select(Signup).where(
            and_(Signup.waitlist_id == waitlist.id, Signup.email == email)
        )
    )
    existing = existing_result.scalar_one_or_none()
    if existing is not None:
        if existing.verified:
            raise Conflict("This email is already on the waitlist")
        await _send_verification(existing, waitlist)
        return {
            "success": True,
            "message": "Verification email resent. Please check your inbox.",
            "resent": True,
            "requiresVerification": True,
        }

    referred_by = None
    if ref:
        referrer = await find_signup_by_code(db, waitlist.id, ref)
        if referrer is not None:
            referred_by = ref
        else:
            logger.info(
                "Unknown referral code %s, recording signup as organic", ref,
                extra={"waitlist_id": str(waitlist.id)},
            )

    position = await count_signups(db, waitlist.id) + 1

    signup = Signup(
        waitlist_id=waitlist.id,
        email=email,
        position=position,
        referral_code=await _unique_referral_code(db, waitlist),
        verify_token=generate_verify_token(),
        referred_by=referred_by,
        ip_address=ip_address,
        user_agent=user_agent,
        referrer_url=referrer_url,
        fraud_flags=fraud.flags.model_dump(),
        created_at=datetime.now(timezone.utc),
    )
    db.add(signup)
    await db.flush()

    if referred_by:
        await increment_referrer(db, waitlist.id, referred_by)

    db.add(AnalyticsEvent(
        waitlist_id=waitlist.id,
        event_type="signup",
        signup_id=signup.id,
        data={"referredBy": referred_by, "position": position},
    ))
    await db.flush()

    logger.info(
        "New signup %s at position %d", mask_email(email), position,
        extra={"waitlist_id": str(waitlist.id), "signup_id": str(signup.id)},
    )

    await _send_verification(signup, waitlist)

    return {
        "success": True,
        "message": "Please check your email to verify your spot!",
        "requiresVerification": True,
        "position": position,
    }


async def verify_signup(db: AsyncSession, slug: str, token: Optional[str]) -> dict:
    """
    Mark the signup holding this token as verified. The token stays on the row,
    so a second click on the same link reports alreadyVerified and credits no one.
    """
    if not token:
        raise ValidationFailed("Verification token required")

    waitlist = await get_waitlist_by_slug(db, slug)

    result = await db.execute(
        select(Signup).where(
            and_(Signup.waitlist_id == waitlist.id, Signup.verify_token == token)
        )
    )
    signup = result.scalar_one_or_none()
    if signup is None:
        raise NotFound("Invalid or expired verification link")

    if signup.verified:
        return {
            "success": True,
            "message": "Your email is already verified!",
            "alreadyVerified": True,
            "position": signup.position,
            "referralCode": signup.referral_code,
        }

    signup.verified = True
    signup.verified_at = datetime.now(timezone.utc)

    db.add(AnalyticsEvent(
        waitlist_id=waitlist.id,
        event_type="verify",
        signup_id=signup.id,
        data={"position": signup.position},
    ))
    if signup.referred_by:
        db.add(AnalyticsEvent(
            waitlist_id=waitlist.id,
            event_type="referral",
            data={"referrerCode": signup.referred_by, "newSignupId": str(signup.id)},
        ))
    await db.flush()

    reward = await record_verified_signup(db, signup.id)

    try:
        await send_notification(
            signup.email,
            "welcome",
            {
                "waitlist_name": waitlist.name,
                "waitlist_slug": waitlist.slug,
                "position": signup.position,
                "referral_code": signup.referral_code,
            },
        )
    except Exception as e:
        logger.error("Failed to send welcome email: %s", str(e))

    return {
        "success": True,
        "message": "Your email is verified! You're on the list.",
        "position": signup.position,
        "referralCode": signup.referral_code,
        "rewardUnlocked": reward.title if reward else None,
    }
