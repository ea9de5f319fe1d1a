# src/hdnotes_backend/app/core/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from os import getenv
from typing import Tuple

from .errors import ConfigError


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if not value:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        raise ConfigError(f"expected an integer, got {value!r}") from None


def _parse_list(value: str | None) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(v.strip() for v in value.split(",") if v.strip())


@dataclass(frozen=True)
class Settings:
    # ==================== Session tokens ====================
    jwt_secret: str = ""
    jwt_iss: str = "hdnotes"
    jwt_aud: str = "hdnotes-api"
    session_ttl_days: int = 7

    # ==================== Storage ====================
    database_url: str = "sqlite:///./hdnotes.db"

    # ==================== Google sign-in ====================
    google_client_id: str = ""

    # ==================== OTP mail transport ====================
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_from: str = ""
    # Log codes instead of mailing them when SMTP is not configured (dev only)
    otp_debug_log: bool = False

    # ==================== OTP policy ====================
    otp_ttl_minutes: int = 5
    otp_max_attempts: int = 5
    otp_hash_rounds: int = 10

    # ==================== App ====================
    app_env: str = "development"
    cors_origins: Tuple[str, ...] = field(default_factory=lambda: ("http://localhost:5173",))

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment and validate them."""
        settings = cls(
            jwt_secret=(getenv("JWT_SECRET") or "").strip(),
            jwt_iss=getenv("JWT_ISS", "hdnotes"),
            jwt_aud=getenv("JWT_AUD", "hdnotes-api"),
            session_ttl_days=_parse_int(getenv("SESSION_TTL_DAYS"), 7),
            database_url=getenv("DATABASE_URL", "sqlite:///./hdnotes.db"),
            google_client_id=(getenv("GOOGLE_CLIENT_ID") or "").strip(),
            smtp_host=getenv("SMTP_HOST", "smtp.gmail.com"),
            smtp_port=_parse_int(getenv("SMTP_PORT"), 587),
            smtp_user=getenv("SMTP_USER", ""),
            smtp_pass=getenv("SMTP_PASS", ""),
            smtp_from=getenv("SMTP_FROM", ""),
            otp_debug_log=_parse_bool(getenv("OTP_DEBUG_LOG")),
            otp_ttl_minutes=_parse_int(getenv("OTP_TTL_MINUTES"), 5),
            otp_max_attempts=_parse_int(getenv("OTP_MAX_ATTEMPTS"), 5),
            otp_hash_rounds=_parse_int(getenv("OTP_HASH_ROUNDS"), 10),
            app_env=(getenv("APP_ENV", "development") or "development").strip().lower(),
            cors_origins=_parse_list(getenv("CORS_ORIGINS", "http://localhost:5173")),
        )
        settings.validate()
        return settings

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)

    @property
    def mail_from(self) -> str:
        return self.smtp_from or f'"HD Notes" <{self.smtp_user}>'

    def validate(self) -> None:
        """Fail fast on configuration the app cannot run with."""
        if not self.jwt_secret:
            raise ConfigError("JWT_SECRET is not set")
        if self.session_ttl_days <= 0:
            raise ConfigError("SESSION_TTL_DAYS must be positive")
        if self.otp_ttl_minutes <= 0 or self.otp_max_attempts <= 0:
            raise ConfigError("OTP_TTL_MINUTES and OTP_MAX_ATTEMPTS must be positive")
        if not 4 <= self.otp_hash_rounds <= 31:
            raise ConfigError("OTP_HASH_ROUNDS must be between 4 and 31")
        if self.is_production and self.otp_debug_log:
            raise ConfigError("OTP_DEBUG_LOG must not be enabled in production")
