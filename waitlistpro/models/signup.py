"""
Signup model - one email on one waitlist.
Referral chains are tracked by code string: referred_by holds the referrer's
public referral_code, not a foreign key.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Text, Float, Integer, Boolean, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column
from waitlistpro.database import Base


class Signup(Base):
    __tablename__ = "signups"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    waitlist_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("waitlists.id"), nullable=False
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)  # always lower-cased
    position: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-based join order

    # Referral tracking
    referral_code: Mapped[str] = mapped_column(String(20), nullable=False)
    referred_by: Mapped[Optional[str]] = mapped_column(String(20))
    referral_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Verification (token cleared once consumed)
    verify_token: Mapped[Optional[str]] = mapped_column(String(64))
    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Launch invites
    invited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    invited_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Fraud flags captured at creation time
    fraud_flags: Mapped[Optional[dict]] = mapped_column(JSONB, default=dict)

    # Request context
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))
    user_agent: Mapped[Optional[str]] = mapped_column(Text)
    referrer_url: Mapped[Optional[str]] = mapped_column(Text)

    # Engagement (populated by email tracking outside this service)
    email_opens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    link_clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    engagement_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("waitlist_id", "email", name="uq_signups_waitlist_email"),
        UniqueConstraint("waitlist_id", "referral_code", name="uq_signups_waitlist_referral_code"),
        UniqueConstraint("waitlist_id", "verify_token", name="uq_signups_waitlist_verify_token"),
        Index("ix_signups_waitlist_created", "waitlist_id", "created_at"),
        Index("ix_signups_waitlist_ip", "waitlist_id", "ip_address"),
        Index("ix_signups_referred_by", "waitlist_id", "referred_by"),
    )

    def __repr__(self) -> str:
        return f"<Signup #{self.position} verified={self.verified}>"
