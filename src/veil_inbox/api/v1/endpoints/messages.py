# src/veil_inbox/api/v1/endpoints/messages.py
"""Message endpoints: the anonymous send plus the recipient's inbox."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Request, status
from sqlalchemy.orm import Session

from veil_inbox.core.errors import NotFound, ValidationError
from veil_inbox.db.time import utcnow
from veil_inbox.models import AnalyticsEventType, Message
from veil_inbox.schemas.common import SuccessResponse
from veil_inbox.schemas.message import (
    MessageDetailResponse,
    MessageListResponse,
    MessageReportRequest,
    MessageReportResponse,
    MessageResponse,
    MessageSendRequest,
    MessageSendResponse,
    SuspiciousActivityResponse,
    SuspiciousSenderResponse,
)
from veil_inbox.services.analytics import record_event
from veil_inbox.services.blocking import BlockService
from veil_inbox.services.intake import MessageIntakePipeline
from veil_inbox.services.notifications import PendingNotification
from veil_inbox.services.suspicious import detect_suspicious_activity, scan_inbox
from veil_inbox.utils.ip_hash import sender_label

from ..dependencies import CurrentProfileDep, NotificationServiceDep, SessionDep

router = APIRouter(prefix="/messages", tags=["messages"])

REPORT_REASONS = frozenset(
    {"spam", "harassment", "inappropriate_content", "threats", "hate_speech", "other"}
)


def _owned_message(db: Session, recipient_id: str, message_id: str) -> Message:
    message = (
        db.query(Message)
        .filter(Message.id == message_id, Message.recipient_id == recipient_id)
        .first()
    )
    if message is None:
        raise NotFound("Message not found")
    return message


def _mark_read(db: Session, message: Message) -> None:
    if message.is_read:
        return
    message.is_read = True
    message.read_at = utcnow()
    db.commit()
    record_event(db, message.recipient_id, AnalyticsEventType.MESSAGE_READ, message_id=message.id)


@router.post("/send", status_code=status.HTTP_201_CREATED, response_model=MessageSendResponse)
async def send_message(
    payload: MessageSendRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: SessionDep,
    notifier: NotificationServiceDep,
) -> MessageSendResponse:
    """Accept an anonymous message for a profile.

    Push delivery runs after the response has been sent.
    """

    def dispatch(pending: PendingNotification) -> None:
        background_tasks.add_task(notifier.deliver, pending)

    pipeline = MessageIntakePipeline(db, dispatch=dispatch)
    result = pipeline.submit(
        payload.recipient_username,
        payload.content,
        request.headers,
        request.query_params,
        payload.client_data,
    )
    return MessageSendResponse(remaining=result.remaining)


@router.get("/list", response_model=MessageListResponse)
async def list_messages(profile: CurrentProfileDep, db: SessionDep) -> MessageListResponse:
    """Return the caller's messages, newest first, with any senders worth a look."""
    messages = (
        db.query(Message)
        .filter(Message.recipient_id == profile.id)
        .order_by(Message.created_at.desc())
        .all()
    )
    suspicious = [
        SuspiciousSenderResponse(
            sender_fingerprint=sender.fingerprint,
            sender_label=sender_label(sender.fingerprint),
            severity=sender.activity.severity,
            reason=sender.activity.reason,
            suggest_block=sender.activity.suggest_block,
            message_count=sender.activity.message_count,
        )
        for sender in scan_inbox(messages, now=utcnow())
    ]
    return MessageListResponse(
        messages=[MessageResponse.model_validate(message) for message in messages],
        count=len(messages),
        suspicious_senders=suspicious,
    )


@router.post("/report", response_model=MessageReportResponse)
async def report_message(
    report: MessageReportRequest,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> MessageReportResponse:
    """Report a message for abuse and hand back its sender fingerprint for blocking."""
    if report.reason not in REPORT_REASONS:
        raise ValidationError("Valid reason is required")

    message = _owned_message(db, profile.id, report.message_id)
    record_event(
        db,
        profile.id,
        AnalyticsEventType.MESSAGE_REPORTED,
        message_id=message.id,
        details={
            "reason": report.reason,
            "details": report.details,
            "sender": sender_label(message.sender_fingerprint),
        },
    )
    return MessageReportResponse(sender_fingerprint=message.sender_fingerprint)


@router.get("/{message_id}", response_model=MessageDetailResponse)
async def get_message(
    message_id: str,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> MessageDetailResponse:
    """Return one message with sender context; opening it marks it read."""
    message = _owned_message(db, profile.id, message_id)
    _mark_read(db, message)

    fingerprint = message.sender_fingerprint
    sender_messages = (
        db.query(Message)
        .filter(Message.recipient_id == profile.id, Message.sender_fingerprint == fingerprint)
        .all()
    )
    activity = detect_suspicious_activity(sender_messages, fingerprint, now=utcnow())
    block = BlockService(db).blocked_entry(profile.id, fingerprint)

    return MessageDetailResponse(
        message=MessageResponse.model_validate(message),
        sender_label=sender_label(fingerprint),
        sender_message_count=len(sender_messages),
        is_sender_blocked=block is not None,
        blocked_reason=block.reason.value if block is not None else None,
        blocked_at=block.created_at if block is not None else None,
        suspicious_activity=SuspiciousActivityResponse.model_validate(activity),
    )


@router.put("/{message_id}/read")
async def mark_message_read(
    message_id: str,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, Any]:
    message = _owned_message(db, profile.id, message_id)
    _mark_read(db, message)
    return {"success": True, "is_read": True}


@router.put("/{message_id}/flag")
async def toggle_message_flag(
    message_id: str,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Flip the message's flagged state."""
    message = _owned_message(db, profile.id, message_id)
    message.is_flagged = not message.is_flagged
    db.commit()
    flagged = message.is_flagged
    if flagged:
        record_event(db, profile.id, AnalyticsEventType.MESSAGE_FLAGGED, message_id=message.id)
    return {"success": True, "is_flagged": flagged}


@router.delete("/{message_id}", response_model=SuccessResponse)
async def delete_message(
    message_id: str,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> SuccessResponse:
    message = _owned_message(db, profile.id, message_id)
    db.delete(message)
    profile.message_count = max(0, (profile.message_count or 0) - 1)
    db.commit()
    record_event(
        db,
        profile.id,
        AnalyticsEventType.MESSAGE_DELETED,
        details={"message_id": message_id},
    )
    return SuccessResponse(message="Message deleted successfully")
