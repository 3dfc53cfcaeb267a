# src/veil_inbox/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .analytics import AnalyticsOverview
from .block import BlockCreate, BlockListResponse, BlockRemove, BlockResponse
from .common import ClientData, SuccessResponse
from .message import (
    MessageDetailResponse,
    MessageListResponse,
    MessageReportRequest,
    MessageReportResponse,
    MessageResponse,
    MessageSendRequest,
    MessageSendResponse,
    SuspiciousSenderResponse,
)
from .notification import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
    SubscriptionCreate,
    SubscriptionRemove,
    SubscriptionResponse,
    NotificationTestResponse,
)
from .visit import VisitTrackRequest, VisitTrackResponse

__all__ = [
    "AnalyticsOverview",
    "BlockCreate", "BlockListResponse", "BlockRemove", "BlockResponse",
    "ClientData", "SuccessResponse",
    "MessageDetailResponse", "MessageListResponse", "MessageReportRequest",
    "MessageReportResponse", "MessageResponse", "MessageSendRequest", "MessageSendResponse",
    "SuspiciousSenderResponse",
    "NotificationPreferences", "NotificationPreferencesUpdate", "SubscriptionCreate",
    "SubscriptionRemove", "SubscriptionResponse", "NotificationTestResponse",
    "VisitTrackRequest", "VisitTrackResponse",
]
