# src/veil_inbox/api/v1/endpoints/visits.py
"""Anonymous profile visit tracking."""

from __future__ import annotations

from fastapi import APIRouter, Request

from veil_inbox.schemas.visit import TrackedFields, VisitTrackRequest, VisitTrackResponse
from veil_inbox.services.visits import VisitTracker

from ..dependencies import SessionDep

router = APIRouter(prefix="/visits", tags=["visits"])


@router.post("/track", response_model=VisitTrackResponse)
async def track_visit(
    payload: VisitTrackRequest,
    request: Request,
    db: SessionDep,
) -> VisitTrackResponse:
    """Count a view of a profile link; repeat views within the hour are accepted silently."""
    result = VisitTracker(db).track(
        payload.profile_id,
        request.headers,
        request.query_params,
        payload.client_data,
    )
    return VisitTrackResponse(tracked=TrackedFields(**result.context.summary()))
