# src/veil_inbox/schemas/analytics.py
"""Analytics overview schema."""

from __future__ import annotations

from pydantic import BaseModel


class DailyActivity(BaseModel):
    date: str
    messages: int
    visits: int


class AnalyticsOverview(BaseModel):
    totalMessages: int
    totalVisits: int
    messagesThisWeek: int
    messagesThisMonth: int
    visitsThisWeek: int
    visitsThisMonth: int
    averageMessagesPerDay: float
    peakDay: str
    recentActivity: list[DailyActivity]
    trafficSources: dict[str, int]
    trafficCategories: dict[str, int]
    devices: dict[str, int]
    browsers: dict[str, int]
