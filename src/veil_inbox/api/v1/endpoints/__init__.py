# src/veil_inbox/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .analytics import router as analytics_router
from .blocks import router as blocks_router
from .messages import router as messages_router
from .notifications import router as notifications_router
from .visits import router as visits_router

__all__ = [
    "analytics_router",
    "blocks_router",
    "messages_router",
    "notifications_router",
    "visits_router",
]
