# src/veil_inbox/services/intake.py
"""Anonymous message intake.

A send moves through a fixed sequence of stages::

    RECEIVED -> CLASSIFIED -> BLOCKED
                           -> RATE_LIMITED
                           -> PERSISTED -> NOTIFICATION_QUEUED -> COMPLETE

``BLOCKED`` and ``RATE_LIMITED`` are terminal rejections and leave nothing
behind in the database. The block check always runs before the rate check so
a blocked sender sees the same rejection whatever their send rate.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from veil_inbox.core.errors import (
    BackendUnavailable,
    Forbidden,
    NotFound,
    RateLimited,
    ValidationError,
)
from veil_inbox.core.settings import settings
from veil_inbox.db.time import utcnow
from veil_inbox.models import AnalyticsEventType, Message, Profile
from veil_inbox.schemas.common import ClientData
from veil_inbox.services.analytics import record_event
from veil_inbox.services.blocking import BlockListGate
from veil_inbox.services.classifier import RequestContext, classify_request
from veil_inbox.services.notifications import PendingNotification, prepare_message_notification
from veil_inbox.services.rate_limiter import MessageRateLimiter
from veil_inbox.utils.ip_hash import fingerprint_request, sender_label

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = "Unable to send message. You may have been blocked by this user."

Dispatcher = Callable[[PendingNotification], None]


class IntakeStage(str, enum.Enum):
    RECEIVED = "received"
    CLASSIFIED = "classified"
    BLOCKED = "blocked"
    RATE_LIMITED = "rate_limited"
    PERSISTED = "persisted"
    NOTIFICATION_QUEUED = "notification_queued"
    COMPLETE = "complete"


@dataclass(frozen=True)
class IntakeResult:
    message: Message
    remaining: int | None
    notification_queued: bool


def format_reset_time(reset_at: datetime) -> str:
    """Human-readable retry time, e.g. ``14:05 UTC``."""
    return reset_at.strftime("%H:%M UTC")


def rate_limit_message(limit: int, window_hours: int, reset_at: datetime) -> str:
    period = "hour" if window_hours == 1 else f"{window_hours} hours"
    return (
        f"Rate limit exceeded. You can send {limit} messages per {period}. "
        f"Try again after {format_reset_time(reset_at)}."
    )


class MessageIntakePipeline:
    """Runs one anonymous send from validation to notification hand-off.

    Args:
        db: Database session.
        dispatch: Called with the pending notification after the message is
            stored. It should schedule delivery and return immediately; the
            API passes FastAPI's ``BackgroundTasks.add_task``.
        secret: Salt secret for fingerprints; defaults to the configured one.
        rate_limiter: Override the limiter built from settings.
        block_gate: Override the gate built from settings.
        clock: Source of the current time, injectable for tests.
    """

    def __init__(
        self,
        db: Session,
        *,
        dispatch: Dispatcher | None = None,
        secret: str | None = None,
        rate_limiter: MessageRateLimiter | None = None,
        block_gate: BlockListGate | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.dispatch = dispatch
        self.secret = secret or settings.salt_secret
        self.rate_limiter = rate_limiter or MessageRateLimiter(db)
        self.block_gate = block_gate or BlockListGate(db)
        self.clock = clock

    def _enter(self, stage: IntakeStage, label: str) -> None:
        logger.debug("Intake %s: %s", label, stage.value)

    def _validate(self, recipient_username: str, content: str) -> tuple[Profile, str]:
        text = content.strip()
        if not text:
            raise ValidationError("Message content cannot be empty")
        if len(text) > settings.max_message_length:
            raise ValidationError(
                f"Message content must be at most {settings.max_message_length} characters"
            )

        recipient = (
            self.db.query(Profile)
            .filter(
                Profile.username == recipient_username.strip().lower(),
                Profile.is_active.is_(True),
            )
            .first()
        )
        if recipient is None:
            raise NotFound("Recipient not found")
        return recipient, text

    def _build_message(
        self,
        recipient: Profile,
        text: str,
        fingerprint: str,
        raw_ip: str,
        context: RequestContext,
        client: ClientData,
        now: datetime,
    ) -> Message:
        return Message(
            recipient_id=recipient.id,
            content=text,
            sender_fingerprint=fingerprint,
            sender_ip_raw=raw_ip,
            sender_device_type=context.device_type,
            sender_browser=context.user_agent.browser,
            sender_os=context.user_agent.os,
            sender_referrer_platform=context.referrer.platform,
            sender_utm_source=context.utm.source,
            sender_utm_campaign=context.utm.campaign,
            sender_timezone=client.timezone,
            sender_language=client.language,
            sender_screen_resolution=client.screen_resolution,
            sender_viewport_size=client.viewport_size,
            sender_available_screen=client.available_screen,
            sender_color_depth=client.color_depth,
            sender_pixel_ratio=client.pixel_ratio,
            sender_touch_support=client.touch_support,
            sender_connection_type=client.connection_type,
            is_read=False,
            created_at=now,
        )

    def _queue_notification(self, recipient: Profile, message: Message) -> bool:
        if self.dispatch is None:
            return False
        try:
            pending = prepare_message_notification(self.db, recipient, message)
            if pending is None:
                logger.debug("Notifications disabled for profile %s", recipient.id)
                return False
            self.dispatch(pending)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to queue notification for message %s", message.id)
            return False
        logger.info(
            "Push notification queued for profile %s (mode: %s)",
            recipient.id,
            "preview" if recipient.notification_show_preview else "private",
        )
        return True

    def submit(
        self,
        recipient_username: str,
        content: str,
        headers: Mapping[str, str],
        query: Mapping[str, object] | str | None = None,
        client_data: ClientData | None = None,
    ) -> IntakeResult:
        """Accept or reject one anonymous message.

        Raises:
            ValidationError: Empty or oversized content.
            NotFound: No active profile with that username.
            Forbidden: The recipient blocked this sender.
            RateLimited: The sender used up the current window.
            BackendUnavailable: The message could not be stored, or a check
                failed while configured to fail closed.
        """
        now = self.clock()
        self._enter(IntakeStage.RECEIVED, recipient_username)
        recipient, text = self._validate(recipient_username, content)

        context = classify_request(headers, query)
        raw_ip, fingerprint = fingerprint_request(headers, self.secret, now=now)
        label = sender_label(fingerprint)
        self._enter(IntakeStage.CLASSIFIED, label)

        if self.block_gate.is_blocked(recipient.id, fingerprint):
            self._enter(IntakeStage.BLOCKED, label)
            logger.info("Rejected send from blocked sender %s", label)
            raise Forbidden(BLOCKED_MESSAGE)

        decision = self.rate_limiter.check_limit(fingerprint, now=now)
        if not decision.allowed:
            self._enter(IntakeStage.RATE_LIMITED, label)
            reset_at = decision.reset_at or now
            raise RateLimited(
                rate_limit_message(
                    self.rate_limiter.limit,
                    int(self.rate_limiter.window.total_seconds() // 3600) or 1,
                    reset_at,
                ),
                reset_at=reset_at,
            )

        message = self._build_message(
            recipient, text, fingerprint, raw_ip, context, client_data or ClientData(), now
        )
        try:
            self.db.add(message)
            recipient.message_count = (recipient.message_count or 0) + 1
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to store message for profile %s: %s", recipient.id, exc)
            raise BackendUnavailable("persist_message", str(exc)) from exc
        self._enter(IntakeStage.PERSISTED, label)

        record_event(
            self.db,
            recipient.id,
            AnalyticsEventType.MESSAGE_RECEIVED,
            message_id=message.id,
            details={
                "device_type": context.device_type,
                "referrer_platform": context.referrer.platform,
                "utm_source": context.utm.source,
            },
        )

        queued = self._queue_notification(recipient, message)
        if queued:
            self._enter(IntakeStage.NOTIFICATION_QUEUED, label)

        remaining = decision.remaining - 1 if decision.remaining is not None else None
        self._enter(IntakeStage.COMPLETE, label)
        logger.info("Accepted message %s for profile %s from %s", message.id, recipient.id, label)
        return IntakeResult(message=message, remaining=remaining, notification_queued=queued)
