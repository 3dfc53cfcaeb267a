# src/veil_inbox/services/rate_limiter.py
"""Sliding-window send limit keyed by sender fingerprint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from veil_inbox.core.errors import BackendUnavailable
from veil_inbox.core.settings import settings
from veil_inbox.db.time import as_utc, utcnow
from veil_inbox.models import Message
from veil_inbox.utils.ip_hash import sender_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check.

    ``remaining`` is ``None`` when the check could not be performed and the
    limiter failed open.
    """

    allowed: bool
    remaining: int | None = None
    reset_at: datetime | None = None


class MessageRateLimiter:
    """Counts a fingerprint's messages over the trailing window.

    The window slides: a refused sender may send again as soon as their
    oldest message in the window ages out, not at a fixed clock boundary.
    """

    def __init__(
        self,
        db: Session,
        *,
        limit: int | None = None,
        window: timedelta | None = None,
        fail_open: bool | None = None,
    ) -> None:
        self.db = db
        self.limit = settings.message_rate_limit if limit is None else limit
        self.window = window or timedelta(hours=settings.message_rate_window_hours)
        self.fail_open = settings.rate_limit_fail_open if fail_open is None else fail_open

    def check_limit(self, fingerprint: str, now: datetime | None = None) -> RateLimitDecision:
        now = now or utcnow()
        window_start = now - self.window
        try:
            count, oldest = (
                self.db.query(func.count(Message.id), func.min(Message.created_at))
                .filter(
                    Message.sender_fingerprint == fingerprint,
                    Message.created_at >= window_start,
                )
                .one()
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            if not self.fail_open:
                raise BackendUnavailable("rate_limit", str(exc)) from exc
            logger.warning(
                "Rate limit check failed for %s; allowing send: %s",
                sender_label(fingerprint),
                exc,
            )
            return RateLimitDecision(allowed=True)

        count = int(count or 0)
        if count >= self.limit:
            reset_at = as_utc(oldest) + self.window if oldest is not None else now + self.window
            logger.info(
                "Rate limit reached for %s (%d/%d)",
                sender_label(fingerprint),
                count,
                self.limit,
            )
            return RateLimitDecision(allowed=False, remaining=0, reset_at=reset_at)

        return RateLimitDecision(allowed=True, remaining=self.limit - count)
