"""
Passwordless authentication: OTP issuance/verification and Google sign-in.

Accounts are only created once a code (or Google token) has been verified,
never when a code is requested.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth.google import GoogleIdentityVerifier
from ..auth.tokens import SessionTokens
from ..core.config import Settings
from ..core.errors import (
    DependencyError,
    ExpiredError,
    InvalidCodeError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from ..core.timeutil import utcnow
from ..core.trace import auth_trace, mask_email
from ..db.models import User
from .identity import PROVIDER_EMAIL, PROVIDER_GOOGLE, UserStore, public_user
from .mailer import OtpMailer
from .otp import OtpStore, check_otp, generate_otp, hash_otp, is_expired

logger = logging.getLogger(__name__)

DEFAULT_NAME = "User"
DEFAULT_GOOGLE_NAME = "Google User"


@dataclass
class AuthResult:
    token: str
    user: User

    def to_dict(self) -> Dict[str, Any]:
        return {"token": self.token, "user": public_user(self.user)}


class AuthService:
    def __init__(
        self,
        db: Session,
        settings: Settings,
        mailer: OtpMailer,
        tokens: SessionTokens,
        google: GoogleIdentityVerifier,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self.users = UserStore(db)
        self.otps = OtpStore(db)
        self.mailer = mailer
        self.tokens = tokens
        self.google = google
        self._now = clock

    # ------------------------
    # OTP issuance
    # ------------------------
    def request_email_otp(self, name: str, email: str, dob: Optional[date] = None) -> None:
        """Signup OTP. Name and dob ride on the challenge until verification."""
        self._issue_otp(email, purpose="signup", name=name, dob=dob)

    def request_signin_otp(self, email: str) -> None:
        try:
            user = self.users.find_by_email(email)
        except SQLAlchemyError as ex:
            logger.exception("User lookup failed")
            raise DependencyError("Failed to send OTP") from ex
        if user is None:
            auth_trace("otp.signin.no_account", email=mask_email(email))
            raise NotFoundError("No account found. Please sign up first.")
        self._issue_otp(email, purpose="signin")

    def _issue_otp(
        self,
        email: str,
        purpose: str,
        name: Optional[str] = None,
        dob: Optional[date] = None,
    ) -> None:
        code = generate_otp()
        try:
            self.otps.replace(
                email,
                hash_otp(code, rounds=self.settings.otp_hash_rounds),
                now=self._now(),
                ttl_minutes=self.settings.otp_ttl_minutes,
                name=name,
                dob=dob,
            )
        except SQLAlchemyError as ex:
            logger.exception("Storing OTP challenge failed")
            raise DependencyError("Failed to send OTP") from ex

        self.mailer.send_otp(email, code)
        auth_trace("otp.issued", email=mask_email(email), purpose=purpose)

    # ------------------------
    # OTP verification
    # ------------------------
    def verify_otp(
        self,
        email: str,
        otp: str,
        name: Optional[str] = None,
        dob: Optional[date] = None,
    ) -> AuthResult:
        """Consume the challenge, then find-or-create the account."""
        pending_name, pending_dob = self._consume_challenge(email, otp)
        name = name or pending_name
        dob = dob or pending_dob
        try:
            user = self.users.find_by_email(email)
            if user is None:
                user = self.users.create(
                    email=email,
                    name=name or DEFAULT_NAME,
                    provider=PROVIDER_EMAIL,
                    dob=dob,
                )
                auth_trace("user.created", provider=PROVIDER_EMAIL, user_id=user.id)
            else:
                self.users.backfill_profile(user, name, dob)
        except SQLAlchemyError as ex:
            logger.exception("Account lookup/creation failed")
            raise DependencyError("Failed to verify OTP") from ex
        return self._session_for(user)

    def verify_signin_otp(self, email: str, otp: str) -> AuthResult:
        """Like verify_otp, but never creates an account."""
        self._consume_challenge(email, otp)
        try:
            user = self.users.find_by_email(email)
        except SQLAlchemyError as ex:
            logger.exception("Account lookup failed")
            raise DependencyError("Failed to verify OTP") from ex
        if user is None:
            raise NotFoundError("Account not found")
        return self._session_for(user)

    def _consume_challenge(self, email: str, otp: str) -> Tuple[Optional[str], Optional[date]]:
        """Validate and delete the challenge; returns the signup profile it carried."""
        try:
            challenge = self.otps.get(email)
            if challenge is None:
                auth_trace("otp.verify.missing", email=mask_email(email))
                raise NotFoundError("OTP not requested or expired", status_code=400)

            if is_expired(challenge, self._now()):
                self.otps.delete(challenge)
                auth_trace("otp.verify.expired", email=mask_email(email))
                raise ExpiredError("OTP expired")

            if challenge.attempts >= self.settings.otp_max_attempts:
                self.otps.delete(challenge)
                auth_trace("otp.verify.exhausted", email=mask_email(email), attempts=challenge.attempts)
                raise RateLimitedError("Too many OTP attempts")

            if not check_otp(otp, challenge.otp_hash):
                attempts = self.otps.record_failure(challenge)
                auth_trace("otp.verify.mismatch", email=mask_email(email), attempts=attempts)
                raise InvalidCodeError("Invalid OTP")

            pending = (challenge.name, challenge.dob)
            self.otps.delete(challenge)
        except SQLAlchemyError as ex:
            logger.exception("OTP challenge access failed")
            raise DependencyError("Failed to verify OTP") from ex
        auth_trace("otp.verify.ok", email=mask_email(email))
        return pending

    # ------------------------
    # Google sign-in
    # ------------------------
    def verify_google_identity(self, id_token: Optional[str]) -> AuthResult:
        if not id_token:
            raise ValidationError("Missing idToken")

        identity = self.google.verify(id_token)
        try:
            user = self.users.find_by_email(identity.email)
            if user is None:
                user = self.users.create(
                    email=identity.email,
                    name=identity.name or DEFAULT_GOOGLE_NAME,
                    provider=PROVIDER_GOOGLE,
                    google_id=identity.subject_id,
                )
                auth_trace("user.created", provider=PROVIDER_GOOGLE, user_id=user.id)
            elif not user.google_id:
                self.users.link_google(user, identity.subject_id)
                auth_trace("user.linked_google", user_id=user.id, provider=user.provider)
        except SQLAlchemyError as ex:
            logger.exception("Google account lookup/creation failed")
            raise DependencyError("Google auth failed") from ex
        return self._session_for(user)

    def _session_for(self, user: User) -> AuthResult:
        return AuthResult(token=self.tokens.mint(user.id, user.email), user=user)
