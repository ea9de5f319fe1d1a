# src/hdnotes_backend/app/auth/google.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from ..core.errors import AuthFailedError
from ..core.trace import auth_trace, mask_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoogleIdentity:
    email: str
    subject_id: str
    name: Optional[str] = None


class GoogleIdentityVerifier:
    """
    Thin wrapper over google-auth's ID token verification.
    google-auth checks signature (Google certs), issuer, audience and expiry;
    this class maps the result to a GoogleIdentity, or AuthFailedError when the
    email is missing or unverified.
    """

    def __init__(self, client_id: str, request: Optional[google_requests.Request] = None):
        self.client_id = (client_id or "").strip()
        self._request = request or google_requests.Request()

    def verify(self, id_token: str) -> GoogleIdentity:
        if not self.client_id:
            logger.warning("Google sign-in attempted but GOOGLE_CLIENT_ID is not configured")
            raise AuthFailedError()

        auth_trace("google.verify.begin", want_aud=self.client_id)
        try:
            claims: Dict[str, Any] = google_id_token.verify_oauth2_token(
                id_token, self._request, audience=self.client_id
            )
        except (ValueError, GoogleAuthError) as ex:
            auth_trace("google.verify.rejected", err=str(ex))
            logger.info("Google ID token rejected: %s", ex)
            raise AuthFailedError()

        email = (claims.get("email") or "").strip().lower()
        sub = claims.get("sub")
        if not email or not sub:
            auth_trace("google.verify.missing_claims", has_email=bool(email), has_sub=bool(sub))
            raise AuthFailedError()

        # older tokens carry the flag as a string
        if claims.get("email_verified") not in (True, "true"):
            auth_trace("google.verify.unverified_email", sub=sub, email=mask_email(email))
            raise AuthFailedError()

        auth_trace("google.verify.ok", sub=sub, email=mask_email(email))
        return GoogleIdentity(email=email, subject_id=str(sub), name=claims.get("name"))
