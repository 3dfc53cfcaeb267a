# src/veil_inbox/api/v1/endpoints/blocks.py
"""Block list management for the authenticated recipient."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from veil_inbox.models import BlockEntry
from veil_inbox.schemas.block import BlockCreate, BlockListResponse, BlockRemove, BlockResponse
from veil_inbox.schemas.common import SuccessResponse
from veil_inbox.services.blocking import BLOCK_REASON_LABELS, BlockService

from ..dependencies import CurrentProfileDep, SessionDep

router = APIRouter(prefix="/block", tags=["block"])


def _serialize_block(entry: BlockEntry) -> BlockResponse:
    return BlockResponse(
        id=entry.id,
        blocked_fingerprint=entry.blocked_fingerprint,
        blocked_label=entry.blocked_label,
        reason=entry.reason.value,
        reason_label=BLOCK_REASON_LABELS[entry.reason],
        created_at=entry.created_at,
    )


@router.post("/add")
async def add_block(
    payload: BlockCreate,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Block a sender so their future sends to this inbox are refused."""
    entry = BlockService(db).add_block(
        profile.id,
        fingerprint=payload.fingerprint,
        reason=payload.reason,
        message_id=payload.message_id,
    )
    return {
        "success": True,
        "message": "Sender blocked successfully",
        "block": _serialize_block(entry).model_dump(mode="json"),
    }


@router.delete("/remove", response_model=SuccessResponse)
async def remove_block(
    payload: BlockRemove,
    profile: CurrentProfileDep,
    db: SessionDep,
) -> SuccessResponse:
    BlockService(db).remove_block(profile.id, payload.block_id)
    return SuccessResponse(message="Sender unblocked successfully")


@router.get("/list", response_model=BlockListResponse)
async def list_blocks(profile: CurrentProfileDep, db: SessionDep) -> BlockListResponse:
    """Return the caller's blocked senders, newest first."""
    entries = BlockService(db).list_blocks(profile.id)
    return BlockListResponse(blocks=[_serialize_block(entry) for entry in entries], count=len(entries))
