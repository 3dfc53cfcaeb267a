# src/veil_inbox/services/analytics.py
"""Dashboard analytics: event recording and the overview numbers."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from veil_inbox.db.time import as_utc, utcnow
from veil_inbox.models import AnalyticsEvent, AnalyticsEventType, Message, Profile, Visit
from veil_inbox.utils.referrer import simplified_category
from veil_inbox.utils.user_agent import browser_family

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_DAYS = 7
BREAKDOWN_DAYS = 30


def record_event(
    db: Session,
    profile_id: str,
    event_type: AnalyticsEventType,
    *,
    message_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> AnalyticsEvent | None:
    """Persist an analytics event.

    Best-effort: a failure is logged and rolled back so it never takes the
    calling request down with it. Returns None in that case.
    """
    event = AnalyticsEvent(
        profile_id=profile_id,
        message_id=message_id,
        event_type=event_type,
        details=details or {},
    )
    try:
        db.add(event)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning(
            "Failed to record %s event for profile %s",
            event_type.value,
            profile_id,
            exc_info=True,
        )
        return None
    return event


def _count_since(db: Session, column: Any, owner: Any, owner_id: str, since: datetime) -> int:
    return int(
        db.query(func.count())
        .filter(owner == owner_id, column >= since)
        .scalar()
        or 0
    )


def overview(db: Session, profile: Profile, now: datetime | None = None) -> dict[str, Any]:
    """Compute the numbers shown on the analytics dashboard."""
    now = as_utc(now or utcnow())
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=BREAKDOWN_DAYS)

    messages_this_week = _count_since(
        db, Message.created_at, Message.recipient_id, profile.id, week_ago
    )
    messages_this_month = _count_since(
        db, Message.created_at, Message.recipient_id, profile.id, month_ago
    )
    visits_this_week = _count_since(db, Visit.created_at, Visit.profile_id, profile.id, week_ago)
    visits_this_month = _count_since(db, Visit.created_at, Visit.profile_id, profile.id, month_ago)

    account_age_days = max(1, (now - as_utc(profile.created_at)).days)
    average_per_day = round(profile.message_count / account_age_days, 1)

    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    first_day = today - timedelta(days=RECENT_ACTIVITY_DAYS - 1)

    message_days = Counter(
        as_utc(created_at).date()
        for (created_at,) in db.query(Message.created_at).filter(
            Message.recipient_id == profile.id,
            Message.created_at >= first_day,
        )
    )
    visit_rows = (
        db.query(
            Visit.created_at,
            Visit.referrer_platform,
            Visit.referrer_category,
            Visit.device_type,
            Visit.browser_name,
        )
        .filter(Visit.profile_id == profile.id, Visit.created_at >= month_ago)
        .all()
    )
    visit_days = Counter(
        as_utc(row.created_at).date()
        for row in visit_rows
        if as_utc(row.created_at) >= first_day
    )

    recent_activity = []
    for offset in range(RECENT_ACTIVITY_DAYS):
        day = first_day + timedelta(days=offset)
        recent_activity.append(
            {
                "date": day.isoformat(),
                "messages": message_days.get(day.date(), 0),
                "visits": visit_days.get(day.date(), 0),
            }
        )

    # Ties go to the earliest day.
    peak = max(recent_activity, key=lambda entry: entry["messages"])
    peak_date = datetime.fromisoformat(peak["date"])
    peak_day = f"{peak_date:%a, %b} {peak_date.day}"

    traffic_sources = Counter(row.referrer_platform or "direct" for row in visit_rows)
    traffic_categories = Counter(
        simplified_category(row.referrer_category, row.referrer_platform) for row in visit_rows
    )
    devices = Counter(row.device_type or "unknown" for row in visit_rows)
    browsers = Counter(browser_family(row.browser_name) for row in visit_rows)

    return {
        "totalMessages": profile.message_count or 0,
        "totalVisits": profile.total_visits or 0,
        "messagesThisWeek": messages_this_week,
        "messagesThisMonth": messages_this_month,
        "visitsThisWeek": visits_this_week,
        "visitsThisMonth": visits_this_month,
        "averageMessagesPerDay": average_per_day,
        "peakDay": peak_day,
        "recentActivity": recent_activity,
        "trafficSources": dict(traffic_sources.most_common()),
        "trafficCategories": dict(traffic_categories.most_common()),
        "devices": dict(devices.most_common()),
        "browsers": dict(browsers.most_common()),
    }
