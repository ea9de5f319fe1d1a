# src/hdnotes_backend/app/db/models.py

import uuid

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..core.timeutil import utcnow
from .session import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_id)
    # stored stripped + lower-cased; unique across providers
    email = Column(String(320), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    dob = Column(Date, nullable=True)
    # "email" | "google"; never changed after creation
    provider = Column(String(16), nullable=False, default="email")
    google_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    notes = relationship("Note", back_populates="user", cascade="all, delete-orphan")


class OtpChallenge(Base):
    """
    Pending one-time passcode for an email address.

    Rules:
      - email is the primary key: at most one live challenge per address.
      - otp_hash is a bcrypt hash; the plain code is never stored.
      - name/dob hold the signup profile until the account is created on verify.
      - deleted on expiry detection, attempt exhaustion or successful use.
    """

    __tablename__ = "otp_challenges"

    email = Column(String(320), primary_key=True)
    otp_hash = Column(String(128), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    name = Column(String(200), nullable=True)
    dob = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Note(Base):
    __tablename__ = "notes"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="notes")
