# tests/conftest.py
from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("IP_SALT_SECRET", "test-salt-secret")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from veil_inbox.api.v1.dependencies import get_notification_service  # noqa: E402
from veil_inbox.core.settings import settings  # noqa: E402
from veil_inbox.db.session import Base  # noqa: E402
from veil_inbox.db.session import get_db as app_get_session  # noqa: E402
from veil_inbox.db.time import utcnow  # noqa: E402
from veil_inbox.main import app as fastapi_app  # noqa: E402
from veil_inbox.models import Message, Profile  # noqa: E402
from veil_inbox.services.notifications import NotificationService, NullPushTransport  # noqa: E402
from veil_inbox.utils.ip_hash import fingerprint_ip  # noqa: E402

TEST_DB_URL = "sqlite://"
SENDER_IP = "203.0.113.45"


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def notification_service(app: FastAPI) -> Iterator[NotificationService]:
    """Replace the push transport so no test ever reaches the network."""
    service = NotificationService(NullPushTransport(), timeout_seconds=1.0)
    app.dependency_overrides[get_notification_service] = lambda: service
    try:
        yield service
    finally:
        app.dependency_overrides.pop(get_notification_service, None)


@pytest.fixture()
def client(app: FastAPI, notification_service: NotificationService) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_profile(db_session: Session) -> Callable[..., Profile]:
    """Return a factory that persists profiles."""

    def _make(username: str = "alice", **fields: Any) -> Profile:
        profile = Profile(id=str(uuid.uuid4()), username=username, **fields)
        db_session.add(profile)
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture()
def recipient(make_profile: Callable[..., Profile]) -> Profile:
    """Create the primary inbox owner."""
    return make_profile("alice", display_name="Alice")


@pytest.fixture()
def other_profile(make_profile: Callable[..., Profile]) -> Profile:
    return make_profile("bob", display_name="Bob")


def make_token(profile_id: str, email: str | None = "owner@example.com", **claims: Any) -> str:
    payload: dict[str, Any] = {"sub": profile_id, "email": email, **claims}
    return jwt.encode(payload, settings.auth_jwt_secret.get_secret_value(), algorithm="HS256")


@pytest.fixture()
def auth_headers(recipient: Profile) -> dict[str, str]:
    """Return authorization headers for the primary recipient."""
    return {"Authorization": f"Bearer {make_token(recipient.id)}"}


@pytest.fixture()
def other_auth_headers(other_profile: Profile) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(other_profile.id)}"}


@pytest.fixture()
def sender_headers() -> dict[str, str]:
    """Headers of an anonymous sender behind a proxy."""
    return {
        "X-Forwarded-For": f"{SENDER_IP}, 10.0.0.1",
        "User-Agent": (
            "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
            "(KHTML, like Gecko) Mobile/15E148 Instagram 300.0.0.0"
        ),
        "Referer": "https://l.instagram.com/?u=https%3A%2F%2Fveil.example%2Falice",
    }


@pytest.fixture()
def sender_fingerprint() -> str:
    return fingerprint_ip(SENDER_IP, settings.salt_secret)


@pytest.fixture()
def seed_messages(db_session: Session) -> Callable[..., list[Message]]:
    """Return a factory inserting messages from one fingerprint at given ages."""

    def _seed(
        recipient: Profile,
        fingerprint: str,
        ages: list[timedelta],
        now: datetime | None = None,
    ) -> list[Message]:
        now = now or utcnow()
        messages = [
            Message(
                recipient_id=recipient.id,
                content=f"seeded {index}",
                sender_fingerprint=fingerprint,
                created_at=now - age,
            )
            for index, age in enumerate(ages)
        ]
        db_session.add_all(messages)
        db_session.commit()
        return messages

    return _seed


@pytest.fixture()
def make_auth_headers() -> Callable[..., dict[str, str]]:
    """Return a factory for authorization headers with arbitrary claims."""

    def _make(profile_id: str, **claims: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(profile_id, **claims)}"}

    return _make
