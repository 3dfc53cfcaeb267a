"""Shared API dependencies for authentication and common functionality."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from veil_inbox.core.settings import settings
from veil_inbox.db.session import get_db
from veil_inbox.models import Profile
from veil_inbox.services.notifications import NotificationService

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as asserted by the identity provider."""

    id: str
    email: str | None = None


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Identity:
    """Verify the bearer token and return the caller's identity.

    Raises:
        HTTPException: 401 when the token is missing, malformed, expired or
            lacks a subject.
    """
    if credentials is None:
        raise _credentials_error("Unauthorized - Please log in")

    options = {"verify_aud": settings.auth_jwt_audience is not None}
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.auth_jwt_secret.get_secret_value(),
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options=options,
        )
    except JWTError as err:
        raise _credentials_error() from err

    subject = payload.get("sub")
    if not subject:
        raise _credentials_error()
    return Identity(id=str(subject), email=payload.get("email"))


IdentityDep = Annotated[Identity, Depends(get_current_identity)]


def get_current_profile(identity: IdentityDep, db: SessionDep) -> Profile:
    """Load the profile owned by the authenticated caller."""
    profile = db.get(Profile, identity.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


# Type alias for current profile dependency
CurrentProfileDep = Annotated[Profile, Depends(get_current_profile)]


def get_notification_service() -> NotificationService:
    """Return a notification service using the configured push transport."""
    return NotificationService()


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
