# src/veil_inbox/models/visit.py
"""Profile link visits, deduplicated per visitor per hour."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from veil_inbox.db.session import Base
from veil_inbox.db.time import utcnow
from veil_inbox.models.profile import new_id


class Visit(Base):
    """One counted view of a profile's public link."""

    __tablename__ = "link_visit"
    __table_args__ = (
        UniqueConstraint(
            "profile_id",
            "visitor_fingerprint",
            "visit_hour",
            name="uq_link_visit_hourly",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    profile_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    visitor_fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    # created_at floored to the UTC hour; part of the dedup key.
    visit_hour: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    referrer: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    device_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    browser_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    browser_version: Mapped[str | None] = mapped_column(String(50), nullable=True)
    os_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    os_version: Mapped[str | None] = mapped_column(String(50), nullable=True)

    referrer_platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    referrer_category: Mapped[str | None] = mapped_column(String(20), nullable=True)
    referrer_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_social_referrer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_in_app_browser: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    utm_source: Mapped[str | None] = mapped_column(String(100), nullable=True)
    utm_medium: Mapped[str | None] = mapped_column(String(100), nullable=True)
    utm_campaign: Mapped[str | None] = mapped_column(String(100), nullable=True)
    utm_term: Mapped[str | None] = mapped_column(String(100), nullable=True)
    utm_content: Mapped[str | None] = mapped_column(String(100), nullable=True)

    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    language: Mapped[str | None] = mapped_column(String(35), nullable=True)
    screen_resolution: Mapped[str | None] = mapped_column(String(20), nullable=True)
    viewport_size: Mapped[str | None] = mapped_column(String(20), nullable=True)
    color_depth: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pixel_ratio: Mapped[float | None] = mapped_column(Float, nullable=True)
    touch_support: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    connection_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
