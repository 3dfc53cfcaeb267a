# src/veil_inbox/services/visits.py
"""Profile visit tracking with per-hour deduplication."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from veil_inbox.core.errors import BackendUnavailable, NotFound
from veil_inbox.core.settings import settings
from veil_inbox.db.time import floor_to_hour, utcnow
from veil_inbox.models import AnalyticsEventType, Profile, Visit
from veil_inbox.schemas.common import ClientData
from veil_inbox.services.analytics import record_event
from veil_inbox.services.classifier import RequestContext, classify_request
from veil_inbox.utils.ip_hash import fingerprint_request, sender_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisitResult:
    context: RequestContext
    duplicate: bool


class VisitTracker:
    """Records one view of a profile link.

    A visitor is counted at most once per profile per UTC hour; the unique
    constraint on ``(profile_id, visitor_fingerprint, visit_hour)`` enforces
    it and a violation is reported as a duplicate, not an error.
    """

    def __init__(
        self,
        db: Session,
        *,
        secret: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.secret = secret or settings.salt_secret
        self.clock = clock

    def track(
        self,
        profile_id: str,
        headers: Mapping[str, str],
        query: Mapping[str, object] | str | None = None,
        client_data: ClientData | None = None,
    ) -> VisitResult:
        now = self.clock()
        profile = self.db.get(Profile, profile_id)
        if profile is None or not profile.is_active:
            raise NotFound("Profile not found")

        context = classify_request(headers, query)
        _, fingerprint = fingerprint_request(headers, self.secret, now=now)
        client = client_data or ClientData()
        parsed = context.user_agent

        visit = Visit(
            profile_id=profile.id,
            visitor_fingerprint=fingerprint,
            visit_hour=floor_to_hour(now),
            referrer=context.referrer.raw,
            user_agent=parsed.raw or None,
            device_type=parsed.device_type,
            browser_name=parsed.browser_name,
            browser_version=parsed.browser_version,
            os_name=parsed.os_name,
            os_version=parsed.os_version,
            referrer_platform=context.referrer.platform,
            referrer_category=context.referrer.category,
            referrer_domain=context.referrer.domain,
            is_social_referrer=context.referrer.is_social,
            is_in_app_browser=context.in_app_browser,
            utm_source=context.utm.source,
            utm_medium=context.utm.medium,
            utm_campaign=context.utm.campaign,
            utm_term=context.utm.term,
            utm_content=context.utm.content,
            timezone=client.timezone,
            language=client.language,
            screen_resolution=client.screen_resolution,
            viewport_size=client.viewport_size,
            color_depth=client.color_depth,
            pixel_ratio=client.pixel_ratio,
            touch_support=client.touch_support,
            connection_type=client.connection_type,
            created_at=now,
        )

        duplicate = False
        try:
            self.db.add(visit)
            profile.total_visits = (profile.total_visits or 0) + 1
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            duplicate = True
            logger.debug(
                "Visit from %s to profile %s already counted this hour",
                sender_label(fingerprint),
                profile_id,
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to track visit for profile %s: %s", profile_id, exc)
            raise BackendUnavailable("track_visit", str(exc)) from exc

        record_event(
            self.db,
            profile_id,
            AnalyticsEventType.PROFILE_VIEWED,
            details={
                "referrer_platform": context.referrer.platform,
                "device_type": parsed.device_type,
                "utm_source": context.utm.source,
                "in_app_browser": context.in_app_browser,
            },
        )
        return VisitResult(context=context, duplicate=duplicate)
