"""
Waitlist and reward tier models.
Display settings (color, button text, success message, show-count flag) are stored as JSONB.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column
from waitlistpro.database import Base

DEFAULT_SETTINGS = {
    "primaryColor": "#3B82F6",
    "buttonText": "Join Waitlist",
    "successMessage": "Check your email to verify your spot!",
    "showCount": True,
}


class Waitlist(Base):
    __tablename__ = "waitlists"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    settings: Mapped[dict] = mapped_column(
        JSONB, nullable=False, default=lambda: dict(DEFAULT_SETTINGS)
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_waitlists_slug", "slug", unique=True),
        Index("ix_waitlists_owner_id", "owner_id"),
    )

    def __repr__(self) -> str:
        return f"<Waitlist {self.slug}>"


class Reward(Base):
    __tablename__ = "rewards"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    waitlist_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("waitlists.id"), nullable=False
    )
    threshold: Mapped[int] = mapped_column(Integer, nullable=False)  # referrals required
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("waitlist_id", "threshold", name="uq_rewards_waitlist_threshold"),
    )

    def __repr__(self) -> str:
        return f"<Reward {self.title} @{self.threshold}>"
