# src/veil_inbox/models/message.py
"""Anonymous messages delivered to a profile's inbox."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from veil_inbox.db.session import Base
from veil_inbox.db.time import utcnow
from veil_inbox.models.profile import new_id


class Message(Base):
    """A message sent by an unauthenticated visitor.

    The sender is only known through a daily-rotating fingerprint plus the
    raw address, which is visible to the recipient alone.
    """

    __tablename__ = "message"
    __table_args__ = (
        Index("ix_message_sender_window", "sender_fingerprint", "created_at"),
        Index("ix_message_recipient_created", "recipient_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    recipient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    sender_fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    sender_ip_raw: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Classified request context.
    sender_device_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sender_browser: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sender_os: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sender_referrer_platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    sender_utm_source: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sender_utm_campaign: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Client-reported capabilities.
    sender_timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sender_language: Mapped[str | None] = mapped_column(String(35), nullable=True)
    sender_screen_resolution: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sender_viewport_size: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sender_available_screen: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sender_color_depth: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sender_pixel_ratio: Mapped[float | None] = mapped_column(Float, nullable=True)
    sender_touch_support: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    sender_connection_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
