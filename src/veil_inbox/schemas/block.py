# src/veil_inbox/schemas/block.py
"""Block list schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BlockCreate(BaseModel):
    """Identify the sender either by fingerprint or by one of their messages."""

    fingerprint: str | None = Field(None, min_length=64, max_length=64)
    message_id: str | None = None
    reason: str | None = None


class BlockRemove(BaseModel):
    block_id: str


class BlockResponse(BaseModel):
    id: str
    blocked_fingerprint: str
    blocked_label: str | None
    reason: str
    reason_label: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BlockListResponse(BaseModel):
    blocks: list[BlockResponse]
    count: int
