# src/veil_inbox/services/blocking.py
"""Per-recipient block list: the send-path gate and block management."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from veil_inbox.core.errors import BackendUnavailable, NotFound, ValidationError
from veil_inbox.core.settings import settings
from veil_inbox.models import BlockEntry, BlockReason, Message
from veil_inbox.utils.ip_hash import sender_label

logger = logging.getLogger(__name__)

BLOCK_REASON_LABELS: dict[BlockReason, str] = {
    BlockReason.SPAM: "Spam or unwanted messages",
    BlockReason.HARASSMENT: "Harassment or bullying",
    BlockReason.INAPPROPRIATE_CONTENT: "Inappropriate or offensive content",
    BlockReason.SUSPICIOUS_ACTIVITY: "Suspicious activity",
    BlockReason.OTHER: "Other",
}


def parse_block_reason(value: str | None) -> BlockReason:
    """Return the enum member for ``value``; ``None`` means ``other``."""
    if value is None:
        return BlockReason.OTHER
    try:
        return BlockReason(value)
    except ValueError as exc:
        allowed = ", ".join(reason.value for reason in BlockReason)
        raise ValidationError(f"Invalid block reason. Expected one of: {allowed}") from exc


class BlockListGate:
    """Existence check consulted before every anonymous send."""

    def __init__(self, db: Session, *, fail_open: bool | None = None) -> None:
        self.db = db
        self.fail_open = settings.block_check_fail_open if fail_open is None else fail_open

    def is_blocked(self, recipient_id: str, fingerprint: str) -> bool:
        try:
            entry_id = (
                self.db.query(BlockEntry.id)
                .filter(
                    BlockEntry.recipient_id == recipient_id,
                    BlockEntry.blocked_fingerprint == fingerprint,
                )
                .first()
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            if not self.fail_open:
                raise BackendUnavailable("block_check", str(exc)) from exc
            logger.warning(
                "Block check failed for %s; treating as not blocked: %s",
                sender_label(fingerprint),
                exc,
            )
            return False
        return entry_id is not None


class BlockService:
    """Recipient-side management of blocked fingerprints."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def add_block(
        self,
        recipient_id: str,
        *,
        fingerprint: str | None = None,
        reason: str | None = None,
        message_id: str | None = None,
    ) -> BlockEntry:
        """Block a sender by fingerprint or by one of their messages.

        Raises:
            ValidationError: Nothing identifies the sender, the reason is
                unknown, or the sender is already blocked.
            NotFound: ``message_id`` is not a message in this inbox.
        """
        block_reason = parse_block_reason(reason)

        if message_id is not None:
            message = (
                self.db.query(Message)
                .filter(Message.id == message_id, Message.recipient_id == recipient_id)
                .first()
            )
            if message is None:
                raise NotFound("Message not found")
            fingerprint = fingerprint or message.sender_fingerprint

        if not fingerprint:
            raise ValidationError("A sender fingerprint or message id is required")

        existing = (
            self.db.query(BlockEntry.id)
            .filter(
                BlockEntry.recipient_id == recipient_id,
                BlockEntry.blocked_fingerprint == fingerprint,
            )
            .first()
        )
        if existing is not None:
            raise ValidationError("This sender is already blocked")

        entry = BlockEntry(
            recipient_id=recipient_id,
            blocked_fingerprint=fingerprint,
            reason=block_reason,
            blocked_label=sender_label(fingerprint),
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent block of the same sender.
            self.db.rollback()
            raise ValidationError("This sender is already blocked") from exc
        self.db.refresh(entry)

        logger.info("Recipient %s blocked %s (%s)", recipient_id, entry.blocked_label, block_reason.value)
        return entry

    def remove_block(self, recipient_id: str, block_id: str) -> None:
        entry = (
            self.db.query(BlockEntry)
            .filter(BlockEntry.id == block_id, BlockEntry.recipient_id == recipient_id)
            .first()
        )
        if entry is None:
            raise NotFound("Block not found")

        self.db.delete(entry)
        self.db.commit()
        logger.info("Recipient %s unblocked %s", recipient_id, entry.blocked_label)

    def list_blocks(self, recipient_id: str) -> list[BlockEntry]:
        return (
            self.db.query(BlockEntry)
            .filter(BlockEntry.recipient_id == recipient_id)
            .order_by(BlockEntry.created_at.desc())
            .all()
        )

    def blocked_entry(self, recipient_id: str, fingerprint: str) -> BlockEntry | None:
        """Return the block row for a sender, if any."""
        return (
            self.db.query(BlockEntry)
            .filter(
                BlockEntry.recipient_id == recipient_id,
                BlockEntry.blocked_fingerprint == fingerprint,
            )
            .first()
        )
