"""
Analytics event model - append-only audit trail of signups, verifications,
referrals and invites. Never updated after insert.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column
from waitlistpro.database import Base

EVENT_TYPES = ("signup", "verify", "referral", "invite")


class AnalyticsEvent(Base):
    __tablename__ = "analytics_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    waitlist_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("waitlists.id"), nullable=False
    )
    event_type: Mapped[str] = mapped_column("type", String(20), nullable=False)
    signup_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("signups.id")
    )
    # "metadata" is reserved on declarative classes
    data: Mapped[Optional[dict]] = mapped_column("metadata", JSONB, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_analytics_events_waitlist", "waitlist_id", "created_at"),
        Index("ix_analytics_events_type", "type"),
    )

    def __repr__(self) -> str:
        return f"<AnalyticsEvent {self.event_type}>"
