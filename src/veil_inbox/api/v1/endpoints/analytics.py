# src/veil_inbox/api/v1/endpoints/analytics.py
"""Recipient analytics dashboard."""

from __future__ import annotations

from fastapi import APIRouter

from veil_inbox.schemas.analytics import AnalyticsOverview
from veil_inbox.services.analytics import overview

from ..dependencies import CurrentProfileDep, SessionDep

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/overview", response_model=AnalyticsOverview)
async def analytics_overview(profile: CurrentProfileDep, db: SessionDep) -> AnalyticsOverview:
    return AnalyticsOverview(**overview(db, profile))
