# src/hdnotes_backend/app/schemas/auth.py

import re
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, field_validator

OTP_PATTERN = re.compile(r"^[0-9]{6}$")


def normalize_email(value: str) -> str:
    return value.strip().lower()


def check_name(value: str) -> str:
    name = " ".join(value.split())
    if len(name) < 2:
        raise ValueError("Name must be at least 2 characters")
    if not all(ch.isalpha() or ch == " " for ch in name):
        raise ValueError("Name may only contain letters and spaces")
    return name


def blank_to_none(value: Any) -> Any:
    # date inputs post "" when left empty
    if isinstance(value, str) and not value.strip():
        return None
    return value


class _EmailBody(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return normalize_email(v)


class RequestOtpBody(_EmailBody):
    """Signup: request a code for a (possibly new) account."""

    name: str
    dob: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return check_name(v)

    @field_validator("dob", mode="before")
    @classmethod
    def _dob(cls, v: Any) -> Any:
        return blank_to_none(v)


class SigninRequestOtpBody(_EmailBody):
    pass


class SigninVerifyOtpBody(_EmailBody):
    otp: str

    @field_validator("otp", mode="before")
    @classmethod
    def _otp(cls, v: Any) -> Any:
        if not isinstance(v, str) or not OTP_PATTERN.match(v.strip()):
            raise ValueError("OTP must be 6 digits")
        return v.strip()


class VerifyOtpBody(SigninVerifyOtpBody):
    name: Optional[str] = None
    dob: Optional[date] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> Any:
        v = blank_to_none(v)
        return check_name(v) if isinstance(v, str) else v

    @field_validator("dob", mode="before")
    @classmethod
    def _dob(cls, v: Any) -> Any:
        return blank_to_none(v)


class GoogleAuthBody(BaseModel):
    # missing token is reported by the service as "Missing idToken"
    idToken: Optional[str] = None
