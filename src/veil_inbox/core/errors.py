"""Error taxonomy for the anonymous inbox pipeline.

Every error raised on purpose by the services derives from `InboxError` and
carries the HTTP status it maps to. The API layer installs
`inbox_error_handler` so routes can simply let these propagate.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class InboxError(Exception):
    """Base exception for expected pipeline failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INBOX_ERROR"

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body sent to the client."""
        return {"error": self.message, **self.extra}


class ValidationError(InboxError):
    """Raised when input has the wrong shape or length."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class NotFound(InboxError):
    """Raised when a recipient, profile, message or block does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class Forbidden(InboxError):
    """Raised when the recipient has blocked the sender."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class RateLimited(InboxError):
    """Raised when a sender exhausted the sliding send window."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "RATE_LIMITED"

    def __init__(self, message: str, reset_at: datetime) -> None:
        super().__init__(message, resetAt=reset_at.isoformat())
        self.reset_at = reset_at


class BackendUnavailable(InboxError):
    """Raised when storage or the notification transport cannot be reached."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "BACKEND_UNAVAILABLE"

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__("Service temporarily unavailable")
        self.operation = operation
        self.reason = reason


async def inbox_error_handler(request: Request, exc: InboxError) -> JSONResponse:
    """Translate an `InboxError` into its JSON response."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report schema validation failures as 400 instead of FastAPI's 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request data",
            "details": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ],
        },
    )
