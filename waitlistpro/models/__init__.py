"""
Database models - import all models here so Alembic can discover them.
"""
from waitlistpro.models.user import User
from waitlistpro.models.waitlist import Waitlist, Reward
from waitlistpro.models.signup import Signup
from waitlistpro.models.analytics_event import AnalyticsEvent

__all__ = [
    "User",
    "Waitlist",
    "Reward",
    "Signup",
    "AnalyticsEvent",
]
