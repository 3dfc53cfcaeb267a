# src/veil_inbox/services/__init__.py
"""Business logic services for the Veil Inbox application."""

from .blocking import BlockListGate, BlockService
from .intake import MessageIntakePipeline
from .notifications import NotificationService
from .rate_limiter import MessageRateLimiter
from .visits import VisitTracker

__all__ = [
    "BlockListGate",
    "BlockService",
    "MessageIntakePipeline",
    "MessageRateLimiter",
    "NotificationService",
    "VisitTracker",
]
