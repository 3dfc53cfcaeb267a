# src/veil_inbox/api/v1/endpoints/notifications.py
"""Push subscription and notification preference endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from veil_inbox.core.errors import NotFound
from veil_inbox.schemas.common import SuccessResponse
from veil_inbox.schemas.notification import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
    NotificationTestResponse,
    SubscriptionCreate,
    SubscriptionRemove,
    SubscriptionResponse,
)
from veil_inbox.services.notifications import (
    PendingNotification,
    build_test_payload,
    get_preferences,
    list_subscriptions,
    remove_endpoints,
    remove_subscription,
    save_subscription,
    update_preferences,
)

from ..dependencies import CurrentProfileDep, NotificationServiceDep, SessionDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post(
    "/subscribe",
    status_code=status.HTTP_201_CREATED,
    response_model=SubscriptionResponse,
)
async def subscribe(
    payload: SubscriptionCreate,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> SubscriptionResponse:
    """Register this browser for push and switch notifications on."""
    subscription = save_subscription(
        db,
        profile,
        endpoint=payload.endpoint,
        p256dh=payload.keys.p256dh,
        auth=payload.keys.auth,
        expiration_time=payload.expiration_time,
    )
    return SubscriptionResponse(subscription_id=subscription.id)


@router.delete("/unsubscribe", response_model=SuccessResponse)
async def unsubscribe(
    payload: SubscriptionRemove,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> SuccessResponse:
    if not remove_subscription(db, profile, payload.endpoint):
        raise NotFound("Subscription not found")
    return SuccessResponse(message="Push notifications disabled for this browser")


@router.get("/preferences", response_model=NotificationPreferences)
async def read_preferences(profile: CurrentProfileDep) -> NotificationPreferences:
    return NotificationPreferences(**get_preferences(profile))


@router.put("/preferences", response_model=NotificationPreferences)
async def write_preferences(
    payload: NotificationPreferencesUpdate,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> NotificationPreferences:
    """Merge the supplied fields into the stored preferences."""
    updated = update_preferences(
        db,
        profile,
        enabled=payload.enabled,
        show_preview=payload.show_preview,
        prompt_shown=payload.prompt_shown,
    )
    return NotificationPreferences(**updated)


@router.post("/test", response_model=NotificationTestResponse)
async def send_test_notification(
    profile: CurrentProfileDep,
    db: SessionDep,
    notifier: NotificationServiceDep,
) -> NotificationTestResponse:
    """Push a test notification to every registered browser and report the outcome."""
    subscriptions = [sub.as_web_push() for sub in list_subscriptions(db, profile.id)]
    if not subscriptions:
        raise NotFound("No push subscriptions found. Enable notifications first.")

    report = await notifier.deliver(
        PendingNotification(
            profile_id=profile.id,
            payload=build_test_payload(),
            subscriptions=subscriptions,
        )
    )
    remove_endpoints(db, report.expired_endpoints)
    return NotificationTestResponse(success=report.sent > 0, sent=report.sent, failed=report.failed)
