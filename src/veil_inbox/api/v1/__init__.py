# src/veil_inbox/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    analytics_router,
    blocks_router,
    messages_router,
    notifications_router,
    visits_router,
)

__all__ = [
    "analytics_router",
    "blocks_router",
    "messages_router",
    "notifications_router",
    "visits_router",
]
