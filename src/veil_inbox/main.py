# src/veil_inbox/main.py
"""Main entry point for the Veil Inbox application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from veil_inbox.api.v1 import (
    analytics_router,
    blocks_router,
    messages_router,
    notifications_router,
    visits_router,
)
from veil_inbox.core.errors import InboxError, inbox_error_handler, request_validation_handler
from veil_inbox.core.logging import configure_logging
from veil_inbox.core.settings import settings

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Anonymous inbox API with privacy-preserving sender fingerprints",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

app.add_exception_handler(InboxError, inbox_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Include API routers
app.include_router(messages_router, prefix="/api/v1")
app.include_router(visits_router, prefix="/api/v1")
app.include_router(blocks_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(analytics_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings.log_level, settings.log_format)
    logger.info(
        "%s %s starting (rate limit %d/%dh, push %s)",
        settings.app_name,
        settings.app_version,
        settings.message_rate_limit,
        settings.message_rate_window_hours,
        "enabled" if settings.push_enabled else "disabled",
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Anonymous inbox API with privacy-preserving sender fingerprints",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("veil_inbox.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
