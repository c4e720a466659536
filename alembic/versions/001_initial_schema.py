"""Initial schema - owners, waitlists, rewards, signups, analytics events.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Owners
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Waitlists
    op.create_table(
        "waitlists",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("settings", postgresql.JSONB, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_waitlists_slug", "waitlists", ["slug"], unique=True)
    op.create_index("ix_waitlists_owner_id", "waitlists", ["owner_id"])

    # Reward tiers
    op.create_table(
        "rewards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("waitlist_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("waitlists.id"), nullable=False),
        sa.Column("threshold", sa.Integer, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("waitlist_id", "threshold", name="uq_rewards_waitlist_threshold"),
    )

    # Signups
    op.create_table(
        "signups",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("waitlist_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("waitlists.id"), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("referral_code", sa.String(20), nullable=False),
        sa.Column("referred_by", sa.String(20)),
        sa.Column("referral_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("verify_token", sa.String(64)),
        sa.Column("verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("verified_at", sa.DateTime(timezone=True)),
        sa.Column("invited", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("invited_at", sa.DateTime(timezone=True)),
        sa.Column("fraud_flags", postgresql.JSONB),
        sa.Column("ip_address", sa.String(45)),
        sa.Column("user_agent", sa.Text),
        sa.Column("referrer_url", sa.Text),
        sa.Column("email_opens", sa.Integer, nullable=False, server_default="0"),
        sa.Column("link_clicks", sa.Integer, nullable=False, server_default="0"),
        sa.Column("engagement_score", sa.Float, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("waitlist_id", "email", name="uq_signups_waitlist_email"),
        sa.UniqueConstraint("waitlist_id", "referral_code", name="uq_signups_waitlist_referral_code"),
        sa.UniqueConstraint("waitlist_id", "verify_token", name="uq_signups_waitlist_verify_token"),
    )
    op.create_index("ix_signups_waitlist_created", "signups", ["waitlist_id", "created_at"])
    op.create_index("ix_signups_waitlist_ip", "signups", ["waitlist_id", "ip_address"])
    op.create_index("ix_signups_referred_by", "signups", ["waitlist_id", "referred_by"])

    # Analytics events (append-only)
    op.create_table(
        "analytics_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("waitlist_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("waitlists.id"), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("signup_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("signups.id")),
        sa.Column("metadata", postgresql.JSONB),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_analytics_events_waitlist", "analytics_events", ["waitlist_id", "created_at"])
    op.create_index("ix_analytics_events_type", "analytics_events", ["type"])


def downgrade() -> None:
    op.drop_table("analytics_events")
    op.drop_table("signups")
    op.drop_table("rewards")
    op.drop_table("waitlists")
    op.drop_table("users")
