"""
OTP helpers and the challenge store.

Handles code generation, bcrypt hashing and the email-keyed challenge table.
"""

from __future__ import annotations

import logging
import secrets
from datetime import date, datetime, timedelta
from typing import Optional

import bcrypt
from sqlalchemy import delete
from sqlalchemy.orm import Session

from ..core.timeutil import as_utc
from ..db.models import OtpChallenge

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp() -> str:
    """Uniform 6-digit code in [100000, 999999]."""
    return str(secrets.randbelow(OTP_MAX - OTP_MIN + 1) + OTP_MIN)


def hash_otp(otp: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(otp.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def check_otp(otp: str, otp_hash: str) -> bool:
    try:
        return bcrypt.checkpw(otp.encode("utf-8"), otp_hash.encode("ascii"))
    except ValueError:
        # malformed stored hash never matches
        logger.error("Stored OTP hash is malformed")
        return False


def is_expired(challenge: OtpChallenge, now: datetime) -> bool:
    return as_utc(challenge.expires_at) < now


class OtpStore:
    """Email-keyed OTP challenges. Every write commits its own transaction."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, email: str) -> Optional[OtpChallenge]:
        return self.db.get(OtpChallenge, email)

    def replace(
        self,
        email: str,
        otp_hash: str,
        now: datetime,
        ttl_minutes: int,
        name: Optional[str] = None,
        dob: Optional[date] = None,
    ) -> OtpChallenge:
        """Delete any challenge for the email and insert a fresh one, atomically."""
        challenge = OtpChallenge(
            email=email,
            otp_hash=otp_hash,
            expires_at=now + timedelta(minutes=ttl_minutes),
            attempts=0,
            name=name,
            dob=dob,
            created_at=now,
        )
        try:
            self.db.execute(delete(OtpChallenge).where(OtpChallenge.email == email))
            self.db.add(challenge)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return challenge

    def record_failure(self, challenge: OtpChallenge) -> int:
        try:
            challenge.attempts = (challenge.attempts or 0) + 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return challenge.attempts

    def delete(self, challenge: OtpChallenge) -> None:
        try:
            self.db.delete(challenge)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
