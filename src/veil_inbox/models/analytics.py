# src/veil_inbox/models/analytics.py
"""Append-only analytics events for the recipient dashboard."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from veil_inbox.db.session import Base
from veil_inbox.db.time import utcnow
from veil_inbox.models.profile import new_id


class AnalyticsEventType(str, enum.Enum):
    """Kinds of events recorded against a profile."""

    MESSAGE_RECEIVED = "message_received"
    MESSAGE_READ = "message_read"
    MESSAGE_FLAGGED = "message_flagged"
    MESSAGE_DELETED = "message_deleted"
    MESSAGE_REPORTED = "message_reported"
    PROFILE_VIEWED = "profile_viewed"
    LINK_SHARED = "link_shared"


class AnalyticsEvent(Base):
    """Single dashboard event."""

    __tablename__ = "analytics_event"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    profile_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    message_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("message.id", ondelete="SET NULL"),
        nullable=True,
    )
    event_type: Mapped[AnalyticsEventType] = mapped_column(
        Enum(
            AnalyticsEventType,
            native_enum=False,
            length=32,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
