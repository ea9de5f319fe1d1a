# src/hdnotes_backend/app/auth/deps.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.errors import InvalidTokenError
from ..core.trace import auth_trace
from ..db.models import User
from ..db.session import get_db
from ..services.auth_service import AuthService
from ..services.mailer import OtpMailer
from ..services.notes import NotesService
from .google import GoogleIdentityVerifier
from .tokens import SessionTokens


# ------------------------
# Process-wide components (built once in create_app)
# ------------------------
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_tokens(request: Request) -> SessionTokens:
    return request.app.state.session_tokens


def get_mailer(request: Request) -> OtpMailer:
    return request.app.state.mailer


def get_google_verifier(request: Request) -> GoogleIdentityVerifier:
    return request.app.state.google_verifier


# ------------------------
# Per-request services
# ------------------------
def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: OtpMailer = Depends(get_mailer),
    tokens: SessionTokens = Depends(get_session_tokens),
    google: GoogleIdentityVerifier = Depends(get_google_verifier),
) -> AuthService:
    return AuthService(db, settings, mailer, tokens, google)


def get_notes_service(db: Session = Depends(get_db)) -> NotesService:
    return NotesService(db)


def require_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    tokens: SessionTokens = Depends(get_session_tokens),
) -> User:
    """
    Resolve `Authorization: Bearer <token>` to the signed-in user.
    Raises InvalidTokenError (401) when the header is missing, the token is
    invalid/expired, or the user no longer exists.
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise InvalidTokenError("Missing token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise InvalidTokenError("Missing token")

    claims = tokens.verify(token)
    user = db.get(User, claims.subject_id)
    if user is None:
        auth_trace("session.user_missing", sub=claims.subject_id)
        raise InvalidTokenError()

    request.state.user = user
    return user
