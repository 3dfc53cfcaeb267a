# src/veil_inbox/models/__init__.py
"""SQLAlchemy models for the Veil Inbox application."""

from .analytics import AnalyticsEvent, AnalyticsEventType
from .block import BlockEntry, BlockReason
from .message import Message
from .profile import Profile
from .push_subscription import PushSubscription
from .visit import Visit

__all__ = [
    "AnalyticsEvent", "AnalyticsEventType",
    "BlockEntry", "BlockReason",
    "Message",
    "Profile",
    "PushSubscription",
    "Visit",
]
