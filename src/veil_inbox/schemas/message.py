# src/veil_inbox/schemas/message.py
"""Message-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import ClientData


class MessageSendRequest(BaseModel):
    """Body of an anonymous send."""

    recipient_username: str = Field(..., min_length=3, max_length=30)
    content: str = Field(..., description="Message text, 1-500 characters after trimming")
    client_data: ClientData | None = Field(None, alias="clientData")

    model_config = ConfigDict(populate_by_name=True)


class MessageSendResponse(BaseModel):
    success: bool = True
    message: str = "Message sent successfully"
    remaining: int | None = Field(
        None,
        description="Sends left in the current window; null when the limit could not be checked",
    )


class MessageResponse(BaseModel):
    """Message as shown in the recipient's inbox."""

    id: str
    content: str
    sender_fingerprint: str
    sender_ip_raw: str | None
    sender_device_type: str | None
    sender_browser: str | None
    sender_os: str | None
    sender_referrer_platform: str | None
    sender_utm_source: str | None
    sender_utm_campaign: str | None
    sender_timezone: str | None
    sender_language: str | None
    sender_screen_resolution: str | None
    sender_viewport_size: str | None
    sender_available_screen: str | None
    sender_color_depth: int | None
    sender_pixel_ratio: float | None
    sender_touch_support: bool | None
    sender_connection_type: str | None
    is_read: bool
    is_flagged: bool
    created_at: datetime
    read_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class SuspiciousActivityResponse(BaseModel):
    is_suspicious: bool
    severity: str
    reason: str | None = None
    suggest_block: bool = False

    model_config = ConfigDict(from_attributes=True)


class SuspiciousSenderResponse(BaseModel):
    """A sender in the inbox whose history trips one of the heuristics."""

    sender_fingerprint: str
    sender_label: str
    severity: str
    reason: str | None = None
    suggest_block: bool = False
    message_count: int


class MessageListResponse(BaseModel):
    messages: list[MessageResponse]
    count: int
    suspicious_senders: list[SuspiciousSenderResponse] = Field(default_factory=list)


class MessageDetailResponse(BaseModel):
    """Single message plus what the recipient needs to decide on blocking."""

    message: MessageResponse
    sender_label: str
    sender_message_count: int
    is_sender_blocked: bool
    blocked_reason: str | None = None
    blocked_at: datetime | None = None
    suspicious_activity: SuspiciousActivityResponse


class MessageReportRequest(BaseModel):
    message_id: str
    reason: str = Field(..., min_length=1, max_length=50)
    details: str | None = Field(None, max_length=500)


class MessageReportResponse(BaseModel):
    success: bool = True
    message: str = "Message reported successfully"
    sender_fingerprint: str
