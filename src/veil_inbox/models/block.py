# src/veil_inbox/models/block.py
"""Per-recipient block list keyed by sender fingerprint."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from veil_inbox.db.session import Base
from veil_inbox.db.time import utcnow
from veil_inbox.models.profile import new_id


class BlockReason(str, enum.Enum):
    """Why a recipient blocked a sender."""

    SPAM = "spam"
    HARASSMENT = "harassment"
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"
    OTHER = "other"


class BlockEntry(Base):
    """A fingerprint the recipient refuses messages from."""

    __tablename__ = "blocked_sender"
    __table_args__ = (
        UniqueConstraint("recipient_id", "blocked_fingerprint", name="uq_blocked_sender"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    recipient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profile.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    blocked_fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    reason: Mapped[BlockReason] = mapped_column(
        Enum(
            BlockReason,
            native_enum=False,
            length=32,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=BlockReason.OTHER,
    )
    blocked_label: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
