# src/hdnotes_backend/app/auth/tokens.py
from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import jwt

from ..core.config import Settings
from ..core.errors import ExpiredError, InvalidTokenError
from ..core.trace import auth_trace, mask_email

ALGO = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    email: str


class SessionTokens:
    """
    Stateless HS256 session tokens.
    Validity is signature + issuer/audience + expiry; nothing is looked up in the store.
    """

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._iss = settings.jwt_iss
        self._aud = settings.jwt_aud
        self._ttl = settings.session_ttl_days * 24 * 3600

    def mint(self, subject_id: str, email: str, now: Optional[datetime] = None) -> str:
        iat = int(now.timestamp()) if now is not None else int(time.time())
        payload: Dict[str, Any] = {
            "iss": self._iss,
            "aud": self._aud,
            "sub": subject_id,
            "email": email,
            "iat": iat,
            "exp": iat + self._ttl,
        }
        tok = jwt.encode(payload, self._secret, algorithm=ALGO)
        auth_trace(
            "session.mint",
            sub=subject_id,
            email=mask_email(email),
            exp_human=time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(payload["exp"])),
        )
        return tok

    def verify(self, token: str) -> TokenClaims:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGO],
                audience=self._aud,
                issuer=self._iss,
                options={"require": ["exp", "iat", "sub", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError:
            auth_trace("session.verify.expired")
            raise ExpiredError("Session expired", status_code=401)
        except jwt.PyJWTError as ex:
            auth_trace("session.verify.invalid", err=type(ex).__name__)
            raise InvalidTokenError()

        email = claims.get("email")
        if not isinstance(email, str) or not email:
            raise InvalidTokenError()
        return TokenClaims(subject_id=str(claims["sub"]), email=email)
