# src/veil_inbox/services/notifications.py
"""Push notifications for new messages.

Delivery goes through a `PushTransport`. In production this is an HTTP push
gateway that performs the Web Push encryption and VAPID signing; the API only
hands it a browser subscription and a JSON payload.

Delivery is fire-and-forget from the sender's point of view: the intake
pipeline resolves the recipient's subscriptions while it still holds a
database session, then schedules `NotificationService.deliver` as a
background task. ``deliver`` never raises; every failure is logged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Protocol

import httpx
from sqlalchemy import or_
from sqlalchemy.orm import Session

from veil_inbox.core.settings import settings
from veil_inbox.db.time import utcnow
from veil_inbox.models import Message, Profile, PushSubscription

logger = logging.getLogger(__name__)

NOTIFICATION_ICON = "/icon-192x192.png"
NOTIFICATION_BADGE = "/icon-96x96.png"
NOTIFICATION_TAG_PREFIX = "veil-message-"

NEW_MESSAGE_TITLE = "New Anonymous Message"
NEW_MESSAGE_PRIVATE_BODY = "You have received a new anonymous message. Tap to read."
TEST_TITLE = "Test Notification"
TEST_BODY = "This is a test notification. Your push notifications are working!"

# Push services answer these for subscriptions that no longer exist.
EXPIRED_STATUS_CODES = frozenset({404, 410})


@dataclass(frozen=True)
class PushResult:
    success: bool
    expired: bool = False
    error: str | None = None


class PushTransport(Protocol):
    async def send(self, subscription: dict[str, Any], payload: dict[str, Any]) -> PushResult:
        ...


class GatewayPushTransport:
    """Relays notifications to an HTTP push gateway."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self.token = token
        self.timeout_seconds = timeout_seconds
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _post(self, client: httpx.AsyncClient, body: dict[str, Any]) -> httpx.Response:
        return await client.post(self.base_url, json=body, headers=self._headers())

    async def send(self, subscription: dict[str, Any], payload: dict[str, Any]) -> PushResult:
        body = {"subscription": subscription, "payload": payload}
        try:
            if self._client is not None:
                response = await self._post(self._client, body)
            else:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout_seconds),
                ) as client:
                    response = await self._post(client, body)
        except httpx.HTTPError as exc:
            return PushResult(success=False, error=f"Push gateway request failed: {exc}")

        if response.status_code in EXPIRED_STATUS_CODES:
            return PushResult(success=False, expired=True, error="Subscription expired")
        if response.is_error:
            return PushResult(
                success=False,
                error=f"Push gateway responded with {response.status_code}",
            )
        return PushResult(success=True)


class NullPushTransport:
    """Transport used when no gateway is configured; every send fails."""

    async def send(self, subscription: dict[str, Any], payload: dict[str, Any]) -> PushResult:
        logger.debug("Push gateway not configured; dropping notification")
        return PushResult(success=False, error="Push gateway not configured")


def get_push_transport() -> PushTransport:
    """Build the transport described by the current settings."""
    if not settings.push_enabled:
        return NullPushTransport()
    token = settings.push_gateway_token
    return GatewayPushTransport(
        settings.push_gateway_url or "",
        token=token.get_secret_value() if token else None,
        timeout_seconds=settings.push_timeout_seconds,
    )


@dataclass(frozen=True)
class PendingNotification:
    """A payload plus the subscriptions it should reach."""

    profile_id: str
    payload: dict[str, Any]
    subscriptions: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class DeliveryReport:
    sent: int = 0
    failed: int = 0
    expired_endpoints: tuple[str, ...] = ()


def message_preview(content: str, max_length: int | None = None) -> str:
    """Truncate content for a notification body, adding an ellipsis when cut."""
    limit = settings.notification_preview_max_length if max_length is None else max_length
    if len(content) > limit:
        return content[:limit] + "..."
    return content


def build_message_payload(
    message_id: str,
    content: str,
    *,
    show_preview: bool,
    app_url: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the notification shown for a new message.

    Preview mode includes a truncated copy of the content; private mode uses
    a generic body so nothing readable appears on a lock screen.
    """
    base = (app_url or settings.app_url).rstrip("/")
    timestamp = (now or utcnow()).isoformat()
    data: dict[str, Any] = {
        "type": "message",
        "mode": "preview" if show_preview else "private",
        "messageId": message_id,
        "timestamp": timestamp,
    }
    if show_preview:
        body = message_preview(content)
        data["content"] = body
    else:
        body = NEW_MESSAGE_PRIVATE_BODY

    return {
        "title": NEW_MESSAGE_TITLE,
        "body": body,
        "icon": f"{base}{NOTIFICATION_ICON}",
        "badge": f"{base}{NOTIFICATION_BADGE}",
        "tag": f"{NOTIFICATION_TAG_PREFIX}{message_id}",
        "data": data,
        "requireInteraction": False,
    }


def build_test_payload(app_url: str | None = None, now: datetime | None = None) -> dict[str, Any]:
    base = (app_url or settings.app_url).rstrip("/")
    return {
        "title": TEST_TITLE,
        "body": TEST_BODY,
        "icon": f"{base}{NOTIFICATION_ICON}",
        "badge": f"{base}{NOTIFICATION_BADGE}",
        "tag": "veil-test",
        "data": {
            "type": "message",
            "mode": "private",
            "messageId": "test",
            "timestamp": (now or utcnow()).isoformat(),
        },
        "requireInteraction": False,
    }


class NotificationService:
    """Sends a pending notification to every subscription of a recipient."""

    def __init__(
        self,
        transport: PushTransport | None = None,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self.transport = transport or get_push_transport()
        self.timeout_seconds = (
            settings.push_timeout_seconds if timeout_seconds is None else timeout_seconds
        )

    async def _send_one(self, subscription: dict[str, Any], payload: dict[str, Any]) -> PushResult:
        try:
            return await asyncio.wait_for(
                self.transport.send(subscription, payload),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            return PushResult(success=False, error="Push delivery timed out")
        except Exception as exc:  # noqa: BLE001
            return PushResult(success=False, error=str(exc))

    async def deliver(self, notification: PendingNotification) -> DeliveryReport:
        """Deliver ``notification``; failures are logged, never raised."""
        if not notification.subscriptions:
            logger.debug("No push subscriptions for profile %s", notification.profile_id)
            return DeliveryReport()

        try:
            results = await asyncio.gather(
                *(
                    self._send_one(subscription, notification.payload)
                    for subscription in notification.subscriptions
                )
            )
        except Exception:  # noqa: BLE001
            logger.exception("Push delivery failed for profile %s", notification.profile_id)
            return DeliveryReport(failed=len(notification.subscriptions))

        sent = sum(1 for result in results if result.success)
        expired = tuple(
            subscription.get("endpoint", "")
            for subscription, result in zip(notification.subscriptions, results, strict=True)
            if result.expired
        )
        for result in results:
            if not result.success and not result.expired:
                logger.warning("Push delivery failed: %s", result.error)
        if expired:
            logger.info(
                "%d push subscription(s) expired for profile %s",
                len(expired),
                notification.profile_id,
            )

        report = DeliveryReport(sent=sent, failed=len(results) - sent, expired_endpoints=expired)
        logger.info(
            "Notification delivered for profile %s (sent=%d, failed=%d)",
            notification.profile_id,
            report.sent,
            report.failed,
        )
        return report


def list_subscriptions(db: Session, profile_id: str) -> list[PushSubscription]:
    return (
        db.query(PushSubscription)
        .filter(PushSubscription.profile_id == profile_id)
        .order_by(PushSubscription.created_at)
        .all()
    )


def prepare_message_notification(
    db: Session,
    recipient: Profile,
    message: Message,
) -> PendingNotification | None:
    """Resolve what to send for ``message``, or None when notifications are off."""
    if not recipient.notifications_enabled:
        return None

    payload = build_message_payload(
        message.id,
        message.content,
        show_preview=recipient.notification_show_preview,
    )
    subscriptions = [sub.as_web_push() for sub in list_subscriptions(db, recipient.id)]
    return PendingNotification(
        profile_id=recipient.id,
        payload=payload,
        subscriptions=subscriptions,
    )


def save_subscription(
    db: Session,
    profile: Profile,
    *,
    endpoint: str,
    p256dh: str,
    auth: str,
    expiration_time: datetime | None = None,
) -> PushSubscription:
    """Create or refresh a subscription (keyed by endpoint) and enable notifications."""
    subscription = db.query(PushSubscription).filter(PushSubscription.endpoint == endpoint).first()
    if subscription is None:
        subscription = PushSubscription(endpoint=endpoint, profile_id=profile.id, p256dh="", auth="")
        db.add(subscription)

    subscription.profile_id = profile.id
    subscription.p256dh = p256dh
    subscription.auth = auth
    subscription.expiration_time = expiration_time
    subscription.updated_at = utcnow()

    profile.notifications_enabled = True
    if profile.notification_permission_granted_at is None:
        profile.notification_permission_granted_at = utcnow()

    db.commit()
    db.refresh(subscription)
    logger.info("Saved push subscription for profile %s", profile.id)
    return subscription


def remove_subscription(db: Session, profile: Profile, endpoint: str) -> bool:
    """Delete the profile's subscription for ``endpoint``.

    Notifications are switched off when the last subscription goes away.
    Returns False when no such subscription existed.
    """
    deleted = (
        db.query(PushSubscription)
        .filter(PushSubscription.profile_id == profile.id, PushSubscription.endpoint == endpoint)
        .delete(synchronize_session=False)
    )
    remaining = (
        db.query(PushSubscription.id).filter(PushSubscription.profile_id == profile.id).first()
    )
    if remaining is None:
        profile.notifications_enabled = False
    db.commit()
    return bool(deleted)


def remove_endpoints(db: Session, endpoints: Sequence[str]) -> int:
    """Delete subscriptions the push service reported as expired."""
    if not endpoints:
        return 0
    deleted = (
        db.query(PushSubscription)
        .filter(PushSubscription.endpoint.in_(list(endpoints)))
        .delete(synchronize_session=False)
    )
    db.commit()
    return int(deleted)


def get_preferences(profile: Profile) -> dict[str, Any]:
    return {
        "enabled": profile.notifications_enabled,
        "show_preview": profile.notification_show_preview,
        "prompt_shown": profile.notification_prompt_shown,
        "permission_granted_at": profile.notification_permission_granted_at,
    }


def update_preferences(
    db: Session,
    profile: Profile,
    *,
    enabled: bool | None = None,
    show_preview: bool | None = None,
    prompt_shown: bool | None = None,
) -> dict[str, Any]:
    """Merge the supplied fields into the profile's notification preferences."""
    if enabled is not None:
        profile.notifications_enabled = enabled
        if enabled and profile.notification_permission_granted_at is None:
            profile.notification_permission_granted_at = utcnow()
    if show_preview is not None:
        profile.notification_show_preview = show_preview
    if prompt_shown is not None:
        profile.notification_prompt_shown = prompt_shown
    db.commit()
    db.refresh(profile)
    return get_preferences(profile)


def prune_stale_subscriptions(
    db: Session,
    *,
    max_age_days: int | None = None,
    now: datetime | None = None,
) -> int:
    """Remove subscriptions past their expiration time or not refreshed in time."""
    now = now or utcnow()
    days = settings.subscription_max_age_days if max_age_days is None else max_age_days
    cutoff = now - timedelta(days=days)

    deleted = (
        db.query(PushSubscription)
        .filter(
            or_(
                PushSubscription.updated_at < cutoff,
                PushSubscription.expiration_time < now,
            )
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Pruned %d stale push subscription(s)", deleted)
    return int(deleted)
