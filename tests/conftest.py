# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List, Optional, Tuple

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from hdnotes_backend.app.auth.deps import get_google_verifier, get_mailer
from hdnotes_backend.app.auth.google import GoogleIdentity
from hdnotes_backend.app.auth.tokens import SessionTokens
from hdnotes_backend.app.core.config import Settings
from hdnotes_backend.app.core.errors import AuthFailedError
from hdnotes_backend.app.db.session import build_engine, init_models, make_session_factory
from hdnotes_backend.app.main import create_app
from hdnotes_backend.app.services.auth_service import AuthService

GOOGLE_CLIENT_ID = "dummy-client.apps.googleusercontent.com"


# ---------- Fakes for external collaborators ----------
class FakeMailer:
    """Captures codes instead of sending mail."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []

    def send_otp(self, to: str, otp: str) -> None:
        self.sent.append((to, otp))

    def last_code(self, email: str) -> str:
        for to, otp in reversed(self.sent):
            if to == email:
                return otp
        raise AssertionError(f"no OTP sent to {email}")


class FakeGoogleVerifier:
    """Known token -> identity; anything else is rejected like a bad signature."""

    def __init__(self) -> None:
        self.identities: Dict[str, GoogleIdentity] = {}

    def add(self, token: str, email: str, sub: str, name: Optional[str] = None) -> str:
        self.identities[token] = GoogleIdentity(email=email, subject_id=sub, name=name)
        return token

    def verify(self, id_token: str) -> GoogleIdentity:
        try:
            return self.identities[id_token]
        except KeyError:
            raise AuthFailedError()


class Clock:
    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kw) -> None:
        self.now = self.now + timedelta(**kw)


# ---------- Fixtures ----------
@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret="test-secret-do-not-use",
        database_url="sqlite://",
        google_client_id=GOOGLE_CLIENT_ID,
        # bcrypt minimum cost keeps the suite fast
        otp_hash_rounds=4,
    )


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def google() -> FakeGoogleVerifier:
    return FakeGoogleVerifier()


@pytest.fixture
def tokens(settings: Settings) -> SessionTokens:
    return SessionTokens(settings)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def db() -> Iterator[Session]:
    engine = build_engine("sqlite://")
    init_models(engine)
    factory = make_session_factory(engine)
    with factory() as session:
        yield session
    engine.dispose()


@pytest.fixture
def auth_service(db, settings, mailer, tokens, google, clock) -> AuthService:
    return AuthService(db, settings, mailer, tokens, google, clock=clock)


@pytest.fixture
def app(settings: Settings, mailer: FakeMailer, google: FakeGoogleVerifier) -> FastAPI:
    application = create_app(settings)
    application.dependency_overrides[get_mailer] = lambda: mailer
    application.dependency_overrides[get_google_verifier] = lambda: google
    return application


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    # context manager runs the lifespan, which creates the tables
    with TestClient(app) as c:
        yield c


@pytest.fixture
def signed_in(client: TestClient, mailer: FakeMailer):
    """Sign up ann@x.com through the OTP flow; returns (auth headers, user dict)."""
    r = client.post("/auth/request-otp", json={"name": "Ann Lee", "email": "ann@x.com"})
    assert r.status_code == 200, r.text
    r = client.post("/auth/verify-otp", json={"email": "ann@x.com", "otp": mailer.last_code("ann@x.com")})
    assert r.status_code == 200, r.text
    body = r.json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]
