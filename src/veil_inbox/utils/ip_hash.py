# src/veil_inbox/utils/ip_hash.py
"""Privacy-preserving sender fingerprints.

Addresses are first truncated to a coarse network prefix (/24 for IPv4, /64
for IPv6) and then hashed together with a salt derived from the current UTC
date. The same network maps to the same fingerprint for one calendar day and
to an unrelated one the next, which is enough for rate limiting and blocking
without keeping a long-term identifier.

The salt is recomputed on every call from ``(date, secret)``; nothing is
cached, so tests can pin the clock by passing ``now``.
"""

from __future__ import annotations

import hashlib
import ipaddress
from collections.abc import Mapping
from datetime import UTC, date, datetime

UNKNOWN_IP = "unknown"

# Checked in order; the first header present wins.
CLIENT_IP_HEADERS: tuple[str, ...] = ("x-forwarded-for", "cf-connecting-ip", "x-real-ip")


def _header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == name:
                return candidate
    return value


def extract_client_ip(headers: Mapping[str, str]) -> str:
    """Return the client address reported by the proxy chain.

    ``x-forwarded-for`` may carry ``client, proxy1, proxy2``; only the first
    hop is used. Returns ``UNKNOWN_IP`` when no header is present.
    """
    for name in CLIENT_IP_HEADERS:
        value = _header(headers, name)
        if not value:
            continue
        candidate = value.split(",")[0].strip()
        if candidate:
            return candidate
    return UNKNOWN_IP


def anonymize_ip(ip: str) -> str:
    """Truncate an address to its network prefix.

    ``192.168.178.123`` becomes ``192.168.178.0`` and an IPv6 address keeps its
    first four groups followed by ``::``. A zone index (``fe80::1%eth0``) is
    dropped. Strings that are not addresses are returned unchanged. Applying
    the function twice gives the same result.
    """
    candidate = ip.strip().split("%", 1)[0]
    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        return ip

    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped

    if isinstance(address, ipaddress.IPv4Address):
        octets = str(address).split(".")
        octets[3] = "0"
        return ".".join(octets)

    groups = address.exploded.split(":")[:4]
    return ":".join(format(int(group, 16), "x") for group in groups) + "::"


def utc_day(now: datetime | None = None) -> date:
    """Return the UTC calendar date of ``now`` (defaults to the current time)."""
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(UTC).date()


def daily_salt(day: date, secret: str) -> str:
    """Return the salt for ``day``: ``SHA256("YYYY-MM-DD" + secret)`` in hex."""
    return hashlib.sha256((day.isoformat() + secret).encode("utf-8")).hexdigest()


def fingerprint_ip(ip: str, secret: str, *, now: datetime | None = None) -> str:
    """Return the 64-character fingerprint of ``ip`` for the UTC day of ``now``."""
    if not secret:
        raise ValueError("A salt secret is required to fingerprint addresses")
    truncated = anonymize_ip(ip)
    salt = daily_salt(utc_day(now), secret)
    return hashlib.sha256((truncated + salt).encode("utf-8")).hexdigest()


def fingerprint_request(
    headers: Mapping[str, str],
    secret: str,
    *,
    now: datetime | None = None,
) -> tuple[str, str]:
    """Extract the client address from ``headers`` and fingerprint it.

    Returns ``(raw_ip, fingerprint)``.
    """
    raw_ip = extract_client_ip(headers)
    return raw_ip, fingerprint_ip(raw_ip, secret, now=now)


def sender_label(fingerprint: str) -> str:
    """Short display label for a fingerprint, e.g. ``Sender-1a2b3c4d``."""
    return f"Sender-{fingerprint[:8]}"
