# src/veil_inbox/schemas/visit.py
"""Visit tracking schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .common import ClientData


class VisitTrackRequest(BaseModel):
    profile_id: str = Field(..., alias="profileId", min_length=1, max_length=36)
    client_data: ClientData | None = Field(None, alias="clientData")

    model_config = ConfigDict(populate_by_name=True)


class TrackedFields(BaseModel):
    device: str
    platform: str
    utm: bool


class VisitTrackResponse(BaseModel):
    success: bool = True
    tracked: TrackedFields
