# mypy: ignore-errors
# tests/services/test_visits.py
"""Tests for hourly-deduplicated visit tracking."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from veil_inbox.core.errors import BackendUnavailable, NotFound
from veil_inbox.models import AnalyticsEvent, AnalyticsEventType, Visit
from veil_inbox.schemas.common import ClientData
from veil_inbox.services.visits import VisitTracker

START = datetime(2026, 10, 18, 12, 10, tzinfo=UTC)
HEADERS = {
    "x-forwarded-for": "198.51.100.23",
    "user-agent": (
        "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
    ),
    "referer": "https://www.tiktok.com/@alice",
}


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_first_visit_is_recorded(db_session, recipient):
    result = VisitTracker(db_session, clock=FakeClock(START)).track(
        recipient.id,
        HEADERS,
        {"utm_source": "tiktok"},
        ClientData(language="en-US", colorDepth=24),
    )

    assert result.duplicate is False
    assert result.context.summary() == {"device": "mobile", "platform": "tiktok", "utm": True}

    visit = db_session.query(Visit).one()
    assert visit.visit_hour.replace(tzinfo=UTC) == START.replace(minute=0)
    assert visit.device_type == "mobile"
    assert visit.browser_name == "Chrome"
    assert visit.os_name == "Android"
    assert visit.referrer_platform == "tiktok"
    assert visit.is_social_referrer is True
    assert visit.utm_source == "tiktok"
    assert visit.language == "en-US"
    assert visit.color_depth == 24

    db_session.refresh(recipient)
    assert recipient.total_visits == 1
    event = db_session.query(AnalyticsEvent).one()
    assert event.event_type is AnalyticsEventType.PROFILE_VIEWED
    assert event.details["referrer_platform"] == "tiktok"


def test_repeat_visit_in_same_hour_is_deduplicated(db_session, recipient):
    clock = FakeClock(START)
    tracker = VisitTracker(db_session, clock=clock)
    tracker.track(recipient.id, HEADERS)

    clock.now = START + timedelta(minutes=40)
    result = tracker.track(recipient.id, HEADERS)

    assert result.duplicate is True
    assert db_session.query(Visit).count() == 1
    db_session.refresh(recipient)
    assert recipient.total_visits == 1


def test_visit_in_next_hour_counts_again(db_session, recipient):
    clock = FakeClock(START)
    tracker = VisitTracker(db_session, clock=clock)
    tracker.track(recipient.id, HEADERS)

    clock.now = START + timedelta(minutes=55)
    result = tracker.track(recipient.id, HEADERS)

    assert result.duplicate is False
    assert db_session.query(Visit).count() == 2
    db_session.refresh(recipient)
    assert recipient.total_visits == 2


def test_different_visitors_in_same_hour_both_count(db_session, recipient):
    tracker = VisitTracker(db_session, clock=FakeClock(START))
    tracker.track(recipient.id, HEADERS)
    tracker.track(recipient.id, {**HEADERS, "x-forwarded-for": "192.0.2.10"})
    assert db_session.query(Visit).count() == 2


def test_unknown_profile(db_session):
    with pytest.raises(NotFound):
        VisitTracker(db_session).track("missing-profile", HEADERS)


def test_inactive_profile(db_session, make_profile):
    profile = make_profile("frank", is_active=False)
    with pytest.raises(NotFound):
        VisitTracker(db_session).track(profile.id, HEADERS)


def test_storage_failure(db_session, recipient, mocker):
    mocker.patch.object(
        db_session, "commit", side_effect=OperationalError("INSERT", {}, Exception("down"))
    )
    with pytest.raises(BackendUnavailable):
        VisitTracker(db_session).track(recipient.id, HEADERS)
