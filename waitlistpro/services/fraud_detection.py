"""
Fraud detection for waitlist signups.

Detects:
- Disposable email addresses
- Suspicious local parts (digit-only, keyboard mash, ...)
- Same-IP referrals (self-referral fraud)
- Per-IP hourly volume and rapid bursts

Read-only: evaluation never writes. The caller stores the returned flags on the new signup.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from waitlistpro.config import get_settings
from waitlistpro.models.signup import Signup
from waitlistpro.schemas.fraud import FraudCheckResult, FraudFlags
from waitlistpro.utils.disposable_domains import DISPOSABLE_DOMAINS, SUSPICIOUS_PATTERNS
from waitlistpro.services.viral_metrics import round_half_up
from waitlistpro.utils.email_validation import split_email

logger = logging.getLogger(__name__)

FLAG_WEIGHTS = {
    "disposableEmail": 40,
    "suspiciousPattern": 20,
    "sameIpReferral": 30,
    "ipRateLimit": 25,
    "rapidSignup": 15,
}

# First match wins
REJECTION_REASONS = (
    ("disposableEmail", "Disposable email addresses are not allowed"),
    ("ipRateLimit", "Too many signups from this IP address"),
    ("sameIpReferral", "Self-referral detected"),
    ("rapidSignup", "Please wait before signing up again"),
    ("suspiciousPattern", "Please use a valid email address"),
)

IP_RATE_WINDOW = timedelta(hours=1)
RAPID_SIGNUP_WINDOW = timedelta(seconds=60)


def is_disposable_email(email: str) -> bool:
    """True for known throwaway domains. Emails without a domain count as disposable."""
    _, domain = split_email(email)
    if not domain:
        return True
    return domain.lower() in DISPOSABLE_DOMAINS


def has_suspicious_pattern(email: str) -> bool:
    """True when the local part is empty or matches a spam heuristic."""
    local_part, _ = split_email(email)
    local_part = local_part.lower()
    if not local_part:
        return True
    return any(pattern.search(local_part) for pattern in SUSPICIOUS_PATTERNS)


async def is_same_ip_referral(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    referral_code: Optional[str],
    ip_address: Optional[str],
) -> bool:
    """True when the referrer signed up from exactly the same IP."""
    if not referral_code or not ip_address:
        return False

    result = await db.execute(
        select(Signup.ip_address).where(
            and_(
                Signup.waitlist_id == waitlist_id,
                Signup.referral_code == referral_code,
            )
        ).limit(1)
    )
    referrer_ip = result.scalar_one_or_none()
    if not referrer_ip:
        return False
    return referrer_ip == ip_address


async def count_recent_signups_from_ip(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    ip_address: str,
    since: datetime,
) -> int:
    result = await db.execute(
        select(func.count()).select_from(Signup).where(
            and_(
                Signup.waitlist_id == waitlist_id,
                Signup.ip_address == ip_address,
                Signup.created_at >= since,
            )
        )
    )
    return result.scalar() or 0


async def check_ip_rate_limit(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    ip_address: Optional[str],
    max_per_hour: int = 10,
    now: Optional[datetime] = None,
) -> bool:
    """True when this IP already has max_per_hour signups in the trailing hour."""
    if not ip_address:
        return False
    now = now or datetime.now(timezone.utc)
    recent = await count_recent_signups_from_ip(db, waitlist_id, ip_address, now - IP_RATE_WINDOW)
    return recent >= max_per_hour


async def check_rapid_signup(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    ip_address: Optional[str],
    max_per_minute: int = 3,
    now: Optional[datetime] = None,
) -> bool:
    """True when this IP already has max_per_minute signups in the trailing 60 seconds."""
    if not ip_address:
        return False
    now = now or datetime.now(timezone.utc)
    recent = await count_recent_signups_from_ip(db, waitlist_id, ip_address, now - RAPID_SIGNUP_WINDOW)
    return recent >= max_per_minute


def score_flags(flags: FraudFlags, clamp: bool = False) -> int:
    """Weighted sum of raised flags. Max 130 unless clamped to 100."""
    raised = flags.model_dump()
    score = sum(weight for name, weight in FLAG_WEIGHTS.items() if raised.get(name))
    if clamp:
        score = min(score, 100)
    return score


def pick_rejection_reason(flags: FraudFlags) -> Optional[str]:
    raised = flags.model_dump()
    for name, reason in REJECTION_REASONS:
        if raised.get(name):
            return reason
    return None


async def evaluate_signup(
    db: AsyncSession,
    waitlist_id: uuid.UUID,
    email: str,
    ip_address: Optional[str],
    referral_code: Optional[str],
    now: Optional[datetime] = None,
) -> FraudCheckResult:
    """
    Run every fraud check for a signup attempt and decide accept/reject.

    Thresholds come from settings (fraud_ip_hourly_limit, fraud_rapid_signup_limit,
    fraud_reject_score, fraud_clamp_score).
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)

    flags = FraudFlags(
        disposableEmail=is_disposable_email(email),
        suspiciousPattern=has_suspicious_pattern(email),
        sameIpReferral=await is_same_ip_referral(db, waitlist_id, referral_code, ip_address),
        ipRateLimit=await check_ip_rate_limit(
            db, waitlist_id, ip_address, settings.fraud_ip_hourly_limit, now=now,
        ),
        rapidSignup=await check_rapid_signup(
            db, waitlist_id, ip_address, settings.fraud_rapid_signup_limit, now=now,
        ),
    )

    score = score_flags(flags, clamp=settings.fraud_clamp_score)
    is_valid = score < settings.fraud_reject_score
    reason = None if is_valid else pick_rejection_reason(flags)

    if not is_valid:
        logger.info(
            "Signup rejected by fraud checks: score=%d reason=%s",
            score, reason,
            extra={"waitlist_id": str(waitlist_id)},
        )

    return FraudCheckResult(is_valid=is_valid, flags=flags, score=score, reason=reason)


async def get_waitlist_fraud_stats(db: AsyncSession, waitlist_id: uuid.UUID) -> dict:
    """Tally the flags stored on every signup of a waitlist."""
    result = await db.execute(
        select(Signup.fraud_flags).where(Signup.waitlist_id == waitlist_id)
    )
    rows = result.scalars().all()

    disposable_count = 0
    same_ip_count = 0
    suspicious_count = 0
    for flags in rows:
        flags = flags or {}
        if flags.get("disposableEmail"):
            disposable_count += 1
        if flags.get("sameIpReferral"):
            same_ip_count += 1
        if flags.get("suspiciousPattern"):
            suspicious_count += 1

    total = len(rows)
    clean_rate = (
        (total - disposable_count - same_ip_count) / total * 100 if total > 0 else 100.0
    )

    return {
        "total": total,
        "flagged": {
            "disposableEmail": disposable_count,
            "sameIpReferral": same_ip_count,
            "suspiciousPattern": suspicious_count,
        },
        "cleanRate": round_half_up(clean_rate, 1),
    }
