# mypy: ignore-errors
# tests/v1/test_visit_tracking.py
"""Tests for the visit tracking endpoint."""

from fastapi import status

from veil_inbox.models import Visit

TRACK_URL = "/api/v1/visits/track"


def test_track_visit(client, recipient, sender_headers, db_session):
    response = client.post(
        f"{TRACK_URL}?utm_source=instagram&utm_medium=story",
        json={"profileId": recipient.id, "clientData": {"language": "de-DE"}},
        headers=sender_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "success": True,
        "tracked": {"device": "mobile", "platform": "instagram", "utm": True},
    }
    visit = db_session.query(Visit).one()
    assert visit.is_in_app_browser is True
    assert visit.utm_medium == "story"
    assert visit.language == "de-DE"


def test_repeat_visit_is_accepted_but_counted_once(client, recipient, sender_headers, db_session):
    for _ in range(3):
        response = client.post(TRACK_URL, json={"profileId": recipient.id}, headers=sender_headers)
        assert response.status_code == status.HTTP_200_OK

    assert db_session.query(Visit).count() == 1
    db_session.refresh(recipient)
    assert recipient.total_visits == 1


def test_direct_visit_without_headers(client, recipient):
    response = client.post(TRACK_URL, json={"profileId": recipient.id})
    assert response.json()["tracked"] == {"device": "unknown", "platform": "direct", "utm": False}


def test_track_unknown_profile(client, sender_headers):
    response = client.post(TRACK_URL, json={"profileId": "missing"}, headers=sender_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Profile not found"}


def test_track_requires_profile_id(client):
    response = client.post(TRACK_URL, json={})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_track_visit_from_scoped_ipv6_address(client, recipient, sender_headers, db_session):
    headers = {**sender_headers, "X-Forwarded-For": "fe80::1%eth0"}
    response = client.post(TRACK_URL, json={"profileId": recipient.id}, headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert db_session.query(Visit).count() == 1
