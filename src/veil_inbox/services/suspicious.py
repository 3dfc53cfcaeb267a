# src/veil_inbox/services/suspicious.py
"""Advisory heuristics that flag bursty or prolific senders.

The detector is a pure function of the message history it is handed; it
never reads the database or the clock, and it never blocks anyone itself.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from veil_inbox.db.time import as_utc

SEVERITY_LOW = "low"
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"


class SenderMessage(Protocol):
    sender_fingerprint: str
    created_at: datetime


@dataclass(frozen=True)
class SuspicionThresholds:
    burst_hour_count: int = 5
    flood_window: timedelta = timedelta(minutes=10)
    flood_count: int = 3
    frequency_hour_count: int = 3
    lifetime_count: int = 20


@dataclass(frozen=True)
class SuspiciousActivity:
    is_suspicious: bool
    severity: str = SEVERITY_LOW
    reason: str | None = None
    suggest_block: bool = False
    message_count: int = 0
    recent_count: int = 0


DEFAULT_THRESHOLDS = SuspicionThresholds()


def detect_suspicious_activity(
    messages: Iterable[SenderMessage],
    fingerprint: str,
    *,
    now: datetime,
    thresholds: SuspicionThresholds = DEFAULT_THRESHOLDS,
) -> SuspiciousActivity:
    """Evaluate a sender's history in one inbox.

    ``messages`` may contain other senders' messages; only those matching
    ``fingerprint`` are considered. Rules are checked from most to least
    severe and the first match wins.
    """
    now = as_utc(now)
    hour_ago = now - timedelta(hours=1)
    flood_start = now - thresholds.flood_window

    timestamps = [
        as_utc(message.created_at)
        for message in messages
        if message.sender_fingerprint == fingerprint
    ]
    last_hour = sum(1 for ts in timestamps if ts > hour_ago)
    last_flood_window = sum(1 for ts in timestamps if ts > flood_start)
    total = len(timestamps)

    if last_hour > thresholds.burst_hour_count:
        return SuspiciousActivity(
            is_suspicious=True,
            severity=SEVERITY_HIGH,
            reason="Multiple messages in short time period",
            suggest_block=True,
            message_count=total,
            recent_count=last_hour,
        )
    if last_flood_window > thresholds.flood_count:
        return SuspiciousActivity(
            is_suspicious=True,
            severity=SEVERITY_HIGH,
            reason="Rapid message flooding detected",
            suggest_block=True,
            message_count=total,
            recent_count=last_hour,
        )
    if last_hour >= thresholds.frequency_hour_count:
        return SuspiciousActivity(
            is_suspicious=True,
            severity=SEVERITY_MEDIUM,
            reason="High message frequency",
            message_count=total,
            recent_count=last_hour,
        )
    if total >= thresholds.lifetime_count:
        return SuspiciousActivity(
            is_suspicious=True,
            severity=SEVERITY_LOW,
            reason="Frequent sender",
            message_count=total,
            recent_count=last_hour,
        )
    return SuspiciousActivity(is_suspicious=False, message_count=total, recent_count=last_hour)


_SEVERITY_RANK = {SEVERITY_HIGH: 3, SEVERITY_MEDIUM: 2, SEVERITY_LOW: 1}


@dataclass(frozen=True)
class SuspiciousSender:
    fingerprint: str
    activity: SuspiciousActivity


def scan_inbox(
    messages: Iterable[SenderMessage],
    *,
    now: datetime,
    thresholds: SuspicionThresholds = DEFAULT_THRESHOLDS,
) -> list[SuspiciousSender]:
    """Run the detector once per distinct sender in an inbox.

    Only flagged senders are returned, most severe first; senders of equal
    severity keep the order in which they first appear in ``messages``.
    """
    history = list(messages)
    flagged: list[SuspiciousSender] = []
    for fingerprint in dict.fromkeys(message.sender_fingerprint for message in history):
        activity = detect_suspicious_activity(
            history, fingerprint, now=now, thresholds=thresholds
        )
        if activity.is_suspicious:
            flagged.append(SuspiciousSender(fingerprint=fingerprint, activity=activity))
    flagged.sort(key=lambda sender: _SEVERITY_RANK[sender.activity.severity], reverse=True)
    return flagged
