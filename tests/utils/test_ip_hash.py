# mypy: ignore-errors
# tests/utils/test_ip_hash.py
"""Tests for address truncation and daily fingerprints."""

import hashlib
from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from veil_inbox.utils.ip_hash import (
    UNKNOWN_IP,
    anonymize_ip,
    daily_salt,
    extract_client_ip,
    fingerprint_ip,
    fingerprint_request,
    sender_label,
    utc_day,
)

SECRET = "unit-test-secret"
NOON = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("ip", "expected"),
    [
        ("192.168.178.123", "192.168.178.0"),
        ("203.0.113.45", "203.0.113.0"),
        ("2001:db8:85a3:8d3:1319:8a2e:370:7348", "2001:db8:85a3:8d3::"),
        ("2001:0db8:0000:0001:0000:0000:0000:0001", "2001:db8:0:1::"),
        ("::ffff:192.0.2.33", "192.0.2.0"),
        ("fe80::1%eth0", "fe80:0:0:0::"),
        ("2001:db8::1%1", "2001:db8:0:0::"),
        ("unknown", "unknown"),
        ("%eth0", "%eth0"),
        ("not-an-ip", "not-an-ip"),
    ],
)
def test_anonymize_ip(ip, expected):
    assert anonymize_ip(ip) == expected


@pytest.mark.parametrize("ip", ["192.168.178.123", "2001:db8:85a3:8d3:1319:8a2e:370:7348"])
def test_anonymize_ip_is_idempotent(ip):
    once = anonymize_ip(ip)
    assert anonymize_ip(once) == once


def test_zone_index_does_not_change_fingerprint():
    assert fingerprint_ip("fe80::1%eth0", SECRET, now=NOON) == fingerprint_ip(
        "fe80::1", SECRET, now=NOON
    )


def test_daily_salt_is_sha256_of_date_and_secret():
    expected = hashlib.sha256(b"2026-10-18" + SECRET.encode()).hexdigest()
    assert daily_salt(date(2026, 10, 18), SECRET) == expected


def test_utc_day_converts_offsets():
    late_evening_new_york = datetime(2026, 10, 18, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert utc_day(late_evening_new_york) == date(2026, 10, 19)


def test_utc_day_treats_naive_as_utc():
    assert utc_day(datetime(2026, 10, 18, 23, 59)) == date(2026, 10, 18)


def test_fingerprint_is_64_hex_chars():
    fingerprint = fingerprint_ip("203.0.113.45", SECRET, now=NOON)
    assert len(fingerprint) == 64
    int(fingerprint, 16)


def test_fingerprint_matches_documented_construction():
    salt = hashlib.sha256(b"2026-10-18" + SECRET.encode()).hexdigest()
    expected = hashlib.sha256(("203.0.113.0" + salt).encode()).hexdigest()
    assert fingerprint_ip("203.0.113.45", SECRET, now=NOON) == expected


def test_same_network_same_day_shares_fingerprint():
    morning = NOON.replace(hour=0, minute=1)
    evening = NOON.replace(hour=23, minute=59)
    assert fingerprint_ip("203.0.113.45", SECRET, now=morning) == fingerprint_ip(
        "203.0.113.200", SECRET, now=evening
    )


def test_fingerprint_rotates_at_utc_midnight():
    before = datetime(2026, 10, 18, 23, 59, 59, tzinfo=UTC)
    after = before + timedelta(seconds=2)
    assert fingerprint_ip("203.0.113.45", SECRET, now=before) != fingerprint_ip(
        "203.0.113.45", SECRET, now=after
    )


def test_fingerprint_differs_by_network_and_secret():
    base = fingerprint_ip("203.0.113.45", SECRET, now=NOON)
    assert fingerprint_ip("203.0.114.45", SECRET, now=NOON) != base
    assert fingerprint_ip("203.0.113.45", "another-secret", now=NOON) != base


def test_fingerprint_requires_secret():
    with pytest.raises(ValueError):
        fingerprint_ip("203.0.113.45", "", now=NOON)


def test_unknown_address_still_fingerprints():
    assert len(fingerprint_ip(UNKNOWN_IP, SECRET, now=NOON)) == 64


def test_extract_client_ip_prefers_forwarded_for_first_hop():
    headers = {
        "x-real-ip": "198.51.100.7",
        "cf-connecting-ip": "198.51.100.8",
        "x-forwarded-for": "203.0.113.45, 10.0.0.1, 10.0.0.2",
    }
    assert extract_client_ip(headers) == "203.0.113.45"


def test_extract_client_ip_header_priority():
    assert extract_client_ip({"x-real-ip": "198.51.100.7", "cf-connecting-ip": "198.51.100.8"}) == (
        "198.51.100.8"
    )
    assert extract_client_ip({"x-real-ip": "198.51.100.7"}) == "198.51.100.7"


def test_extract_client_ip_is_case_insensitive():
    assert extract_client_ip({"X-Forwarded-For": "203.0.113.45"}) == "203.0.113.45"


def test_extract_client_ip_skips_empty_headers():
    assert extract_client_ip({"x-forwarded-for": " ", "x-real-ip": "198.51.100.7"}) == "198.51.100.7"


def test_extract_client_ip_defaults_to_unknown():
    assert extract_client_ip({}) == UNKNOWN_IP


def test_fingerprint_request_returns_raw_ip_and_fingerprint():
    raw_ip, fingerprint = fingerprint_request(
        {"x-forwarded-for": "203.0.113.45"}, SECRET, now=NOON
    )
    assert raw_ip == "203.0.113.45"
    assert fingerprint == fingerprint_ip("203.0.113.45", SECRET, now=NOON)


def test_sender_label():
    assert sender_label("1a2b3c4d5e6f" + "0" * 52) == "Sender-1a2b3c4d"
