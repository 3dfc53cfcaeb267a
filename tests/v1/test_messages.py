# mypy: ignore-errors
# tests/v1/test_messages.py
"""Tests for the anonymous send endpoint and the recipient inbox."""

from datetime import datetime, timedelta

from fastapi import status

from veil_inbox.db.time import utcnow
from veil_inbox.models import AnalyticsEvent, AnalyticsEventType, Message
from veil_inbox.services.blocking import BlockService
from veil_inbox.services.intake import BLOCKED_MESSAGE

SEND_URL = "/api/v1/messages/send"


def _send(client, headers, content="hello", username="alice", **extra):
    return client.post(
        SEND_URL,
        json={"recipient_username": username, "content": content, **extra},
        headers=headers,
    )


def test_send_message(client, recipient, sender_headers, sender_fingerprint, db_session):
    response = _send(
        client,
        sender_headers,
        content="Loved your talk!",
        clientData={"timezone": "Europe/Berlin", "screenResolution": "390x844", "touchSupport": True},
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json() == {
        "success": True,
        "message": "Message sent successfully",
        "remaining": 9,
    }
    message = db_session.query(Message).one()
    assert message.recipient_id == recipient.id
    assert message.sender_fingerprint == sender_fingerprint
    assert message.sender_ip_raw == "203.0.113.45"
    assert message.sender_device_type == "mobile"
    assert message.sender_referrer_platform == "instagram"
    assert message.sender_screen_resolution == "390x844"
    assert message.sender_touch_support is True


def test_send_message_rate_limit(client, recipient, sender_headers):
    for expected in range(9, -1, -1):
        response = _send(client, sender_headers, content=f"message {expected}")
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["remaining"] == expected

    response = _send(client, sender_headers, content="one too many")

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    body = response.json()
    assert body["error"].startswith("Rate limit exceeded. You can send 10 messages per hour.")
    reset_at = datetime.fromisoformat(body["resetAt"])
    assert utcnow() < reset_at <= utcnow() + timedelta(hours=1)


def test_rate_limit_is_per_sender(client, recipient, sender_headers):
    for _ in range(10):
        _send(client, sender_headers)
    other_sender = {**sender_headers, "X-Forwarded-For": "198.51.100.99"}
    response = _send(client, other_sender)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["remaining"] == 9


def test_send_to_blocked_recipient(client, recipient, sender_headers, sender_fingerprint, db_session):
    BlockService(db_session).add_block(recipient.id, fingerprint=sender_fingerprint)

    response = _send(client, sender_headers)

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"error": BLOCKED_MESSAGE}
    assert db_session.query(Message).count() == 0


def test_send_to_unknown_recipient(client, recipient, sender_headers):
    response = _send(client, sender_headers, username="nobody")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Recipient not found"}


def test_send_empty_message(client, recipient, sender_headers):
    response = _send(client, sender_headers, content="   ")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Message content cannot be empty"}


def test_send_oversized_message(client, recipient, sender_headers):
    response = _send(client, sender_headers, content="x" * 501)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_send_malformed_body(client, recipient, sender_headers):
    response = client.post(SEND_URL, json={"recipient_username": "alice"}, headers=sender_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["error"] == "Invalid request data"
    assert body["details"]


def test_send_increments_message_count(client, recipient, sender_headers, db_session):
    _send(client, sender_headers)
    _send(client, sender_headers)
    db_session.refresh(recipient)
    assert recipient.message_count == 2


def test_list_messages(client, recipient, other_profile, auth_headers, seed_messages):
    seed_messages(recipient, "a" * 64, [timedelta(minutes=30), timedelta(minutes=5)])
    seed_messages(other_profile, "a" * 64, [timedelta(minutes=1)])

    response = client.get("/api/v1/messages/list", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["count"] == 2
    contents = [message["content"] for message in data["messages"]]
    assert contents == ["seeded 1", "seeded 0"]


def test_list_messages_requires_auth(client):
    response = client.get("/api/v1/messages/list")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"detail": "Unauthorized - Please log in"}


def test_message_detail_marks_read_and_flags_burst(
    client, recipient, auth_headers, seed_messages, db_session
):
    ages = [timedelta(minutes=m) for m in (1, 8, 15, 22, 29, 36)]
    messages = seed_messages(recipient, "a" * 64, ages)
    message_id = messages[0].id

    response = client.get(f"/api/v1/messages/{message_id}", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["message"]["id"] == message_id
    assert data["message"]["is_read"] is True
    assert data["sender_label"] == "Sender-aaaaaaaa"
    assert data["sender_message_count"] == 6
    assert data["is_sender_blocked"] is False
    assert data["suspicious_activity"] == {
        "is_suspicious": True,
        "severity": "high",
        "reason": "Multiple messages in short time period",
        "suggest_block": True,
    }
    events = db_session.query(AnalyticsEvent).all()
    assert [event.event_type for event in events] == [AnalyticsEventType.MESSAGE_READ]


def test_message_detail_reports_block(client, recipient, auth_headers, seed_messages, db_session):
    (message,) = seed_messages(recipient, "a" * 64, [timedelta(minutes=5)])
    BlockService(db_session).add_block(recipient.id, fingerprint="a" * 64, reason="spam")

    data = client.get(f"/api/v1/messages/{message.id}", headers=auth_headers).json()

    assert data["is_sender_blocked"] is True
    assert data["blocked_reason"] == "spam"
    assert data["blocked_at"] is not None
    assert data["suspicious_activity"]["is_suspicious"] is False


def test_message_of_other_recipient_is_hidden(client, other_profile, auth_headers, seed_messages):
    (message,) = seed_messages(other_profile, "a" * 64, [timedelta(minutes=5)])
    response = client.get(f"/api/v1/messages/{message.id}", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Message not found"}


def test_mark_read(client, recipient, auth_headers, seed_messages, db_session):
    (message,) = seed_messages(recipient, "a" * 64, [timedelta(minutes=5)])

    response = client.put(f"/api/v1/messages/{message.id}/read", headers=auth_headers)

    assert response.json() == {"success": True, "is_read": True}
    db_session.refresh(message)
    assert message.is_read is True
    assert message.read_at is not None


def test_toggle_flag(client, recipient, auth_headers, seed_messages, db_session):
    (message,) = seed_messages(recipient, "a" * 64, [timedelta(minutes=5)])
    url = f"/api/v1/messages/{message.id}/flag"

    assert client.put(url, headers=auth_headers).json() == {"success": True, "is_flagged": True}
    assert client.put(url, headers=auth_headers).json() == {"success": True, "is_flagged": False}
    flagged_events = (
        db_session.query(AnalyticsEvent)
        .filter(AnalyticsEvent.event_type == AnalyticsEventType.MESSAGE_FLAGGED)
        .count()
    )
    assert flagged_events == 1


def test_delete_message(client, recipient, auth_headers, sender_headers, db_session):
    _send(client, sender_headers)
    message = db_session.query(Message).one()

    response = client.delete(f"/api/v1/messages/{message.id}", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "message": "Message deleted successfully"}
    assert db_session.query(Message).count() == 0
    db_session.refresh(recipient)
    assert recipient.message_count == 0


def test_delete_unknown_message(client, recipient, auth_headers):
    response = client.delete("/api/v1/messages/does-not-exist", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_report_message(client, recipient, auth_headers, seed_messages, db_session):
    (message,) = seed_messages(recipient, "a" * 64, [timedelta(minutes=5)])

    response = client.post(
        "/api/v1/messages/report",
        json={"message_id": message.id, "reason": "harassment", "details": "keeps coming back"},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "success": True,
        "message": "Message reported successfully",
        "sender_fingerprint": "a" * 64,
    }
    event = db_session.query(AnalyticsEvent).one()
    assert event.event_type is AnalyticsEventType.MESSAGE_REPORTED
    assert event.details["reason"] == "harassment"
    assert event.details["sender"] == "Sender-aaaaaaaa"


def test_report_with_invalid_reason(client, recipient, auth_headers, seed_messages):
    (message,) = seed_messages(recipient, "a" * 64, [timedelta(minutes=5)])
    response = client.post(
        "/api/v1/messages/report",
        json={"message_id": message.id, "reason": "boring"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Valid reason is required"}


def test_send_from_scoped_ipv6_address(client, recipient, sender_headers, db_session):
    for forwarded in ("fe80::1%eth0", "2001:db8::1%1"):
        headers = {**sender_headers, "X-Forwarded-For": forwarded}
        response = _send(client, headers)
        assert response.status_code == status.HTTP_201_CREATED

    stored = {message.sender_ip_raw for message in db_session.query(Message).all()}
    assert stored == {"fe80::1%eth0", "2001:db8::1%1"}


def test_send_with_oversized_client_data(client, recipient, sender_headers, db_session):
    response = _send(
        client,
        sender_headers,
        clientData={
            "viewportSize": "1234567890x1234567890",
            "timezone": "Area/" + "x" * 80,
            "colorDepth": 4096,
            "pixelRatio": 3.0,
        },
    )

    assert response.status_code == status.HTTP_201_CREATED
    message = db_session.query(Message).one()
    assert message.sender_viewport_size == "1234567890x123456789"
    assert len(message.sender_timezone) == 64
    assert message.sender_color_depth is None
    assert message.sender_pixel_ratio == 3.0


def test_list_messages_reports_suspicious_senders(client, recipient, auth_headers, seed_messages):
    bursty = "b" * 64
    steady = "c" * 64
    seed_messages(recipient, steady, [timedelta(minutes=minutes) for minutes in (15, 25, 35)])
    seed_messages(recipient, bursty, [timedelta(minutes=minutes) for minutes in range(1, 7)])
    seed_messages(recipient, "d" * 64, [timedelta(hours=3)])

    response = client.get("/api/v1/messages/list", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    flagged = response.json()["suspicious_senders"]
    assert [entry["sender_fingerprint"] for entry in flagged] == [bursty, steady]
    assert flagged[0]["severity"] == "high"
    assert flagged[0]["suggest_block"] is True
    assert flagged[0]["sender_label"] == "Sender-bbbbbbbb"
    assert flagged[1] == {
        "sender_fingerprint": steady,
        "sender_label": "Sender-cccccccc",
        "severity": "medium",
        "reason": "High message frequency",
        "suggest_block": False,
        "message_count": 3,
    }
