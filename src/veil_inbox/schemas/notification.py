# src/veil_inbox/schemas/notification.py
"""Push subscription and notification preference schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class SubscriptionCreate(BaseModel):
    """Browser ``PushSubscription.toJSON()`` output."""

    endpoint: str = Field(..., min_length=1, max_length=2048)
    keys: SubscriptionKeys
    expiration_time: datetime | None = Field(None, alias="expirationTime")

    model_config = ConfigDict(populate_by_name=True)


class SubscriptionRemove(BaseModel):
    endpoint: str = Field(..., min_length=1)


class SubscriptionResponse(BaseModel):
    success: bool = True
    subscription_id: str


class NotificationPreferences(BaseModel):
    enabled: bool = False
    show_preview: bool = False
    prompt_shown: bool = False
    permission_granted_at: datetime | None = None


class NotificationPreferencesUpdate(BaseModel):
    enabled: bool | None = None
    show_preview: bool | None = None
    prompt_shown: bool | None = None


class NotificationTestResponse(BaseModel):
    success: bool
    sent: int
    failed: int
