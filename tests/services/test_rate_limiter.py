# mypy: ignore-errors
# tests/services/test_rate_limiter.py
"""Tests for the sliding-window send limit."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from veil_inbox.core.errors import BackendUnavailable
from veil_inbox.services.rate_limiter import MessageRateLimiter

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
FINGERPRINT = "a" * 64


def _minutes(*values):
    return [timedelta(minutes=value) for value in values]


def test_first_message_is_allowed_with_full_allowance(db_session):
    decision = MessageRateLimiter(db_session).check_limit(FINGERPRINT, now=NOW)
    assert decision.allowed
    assert decision.remaining == 10
    assert decision.reset_at is None


def test_ninth_prior_message_leaves_one(db_session, recipient, seed_messages):
    seed_messages(recipient, FINGERPRINT, _minutes(*range(1, 10)), now=NOW)
    decision = MessageRateLimiter(db_session).check_limit(FINGERPRINT, now=NOW)
    assert decision.allowed
    assert decision.remaining == 1


def test_limit_reached_reports_reset_from_oldest_message(db_session, recipient, seed_messages):
    seed_messages(recipient, FINGERPRINT, _minutes(50, *range(1, 10)), now=NOW)
    decision = MessageRateLimiter(db_session).check_limit(FINGERPRINT, now=NOW)
    assert not decision.allowed
    assert decision.remaining == 0
    assert decision.reset_at == NOW + timedelta(minutes=10)


def test_messages_outside_window_do_not_count(db_session, recipient, seed_messages):
    seed_messages(recipient, FINGERPRINT, _minutes(*range(61, 81)), now=NOW)
    decision = MessageRateLimiter(db_session).check_limit(FINGERPRINT, now=NOW)
    assert decision.allowed
    assert decision.remaining == 10


def test_window_slides_as_oldest_message_ages_out(db_session, recipient, seed_messages):
    seed_messages(recipient, FINGERPRINT, _minutes(55, *range(1, 10)), now=NOW)
    limiter = MessageRateLimiter(db_session)
    assert not limiter.check_limit(FINGERPRINT, now=NOW).allowed
    later = limiter.check_limit(FINGERPRINT, now=NOW + timedelta(minutes=6))
    assert later.allowed
    assert later.remaining == 1


def test_limit_is_per_fingerprint_across_recipients(
    db_session, recipient, other_profile, seed_messages
):
    seed_messages(recipient, FINGERPRINT, _minutes(1, 2, 3, 4, 5), now=NOW)
    seed_messages(other_profile, FINGERPRINT, _minutes(6, 7, 8, 9, 10), now=NOW)
    seed_messages(recipient, "b" * 64, _minutes(1, 2, 3), now=NOW)

    limiter = MessageRateLimiter(db_session)
    assert not limiter.check_limit(FINGERPRINT, now=NOW).allowed
    assert limiter.check_limit("b" * 64, now=NOW).remaining == 7


def test_custom_limit_and_window(db_session, recipient, seed_messages):
    seed_messages(recipient, FINGERPRINT, _minutes(1, 20), now=NOW)
    limiter = MessageRateLimiter(db_session, limit=2, window=timedelta(minutes=30))
    decision = limiter.check_limit(FINGERPRINT, now=NOW)
    assert not decision.allowed
    assert decision.reset_at == NOW + timedelta(minutes=10)


def test_fail_open_allows_when_store_errors(db_session, mocker):
    mocker.patch.object(
        db_session, "query", side_effect=OperationalError("SELECT", {}, Exception("down"))
    )
    decision = MessageRateLimiter(db_session, fail_open=True).check_limit(FINGERPRINT, now=NOW)
    assert decision.allowed
    assert decision.remaining is None


def test_fail_closed_raises_backend_unavailable(db_session, mocker):
    mocker.patch.object(
        db_session, "query", side_effect=OperationalError("SELECT", {}, Exception("down"))
    )
    with pytest.raises(BackendUnavailable) as excinfo:
        MessageRateLimiter(db_session, fail_open=False).check_limit(FINGERPRINT, now=NOW)
    assert excinfo.value.operation == "rate_limit"
    assert excinfo.value.status_code == 503
