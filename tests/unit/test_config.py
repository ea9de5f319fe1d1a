# tests/unit/test_config.py
import pytest

from hdnotes_backend.app.core.config import Settings
from hdnotes_backend.app.core.errors import ConfigError
from hdnotes_backend.app.main import create_app

ENV_VARS = [
    "JWT_SECRET", "JWT_ISS", "JWT_AUD", "SESSION_TTL_DAYS", "DATABASE_URL",
    "GOOGLE_CLIENT_ID", "SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS",
    "SMTP_FROM", "OTP_DEBUG_LOG", "OTP_TTL_MINUTES", "OTP_MAX_ATTEMPTS",
    "OTP_HASH_ROUNDS", "APP_ENV", "CORS_ORIGINS",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_missing_jwt_secret_fails_fast():
    with pytest.raises(ConfigError, match="JWT_SECRET"):
        Settings.from_env()


def test_create_app_refuses_settings_without_secret():
    with pytest.raises(ConfigError):
        create_app(Settings(jwt_secret="", database_url="sqlite://"))


def test_defaults(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    s = Settings.from_env()
    assert s.session_ttl_days == 7
    assert s.otp_ttl_minutes == 5
    assert s.otp_max_attempts == 5
    assert s.smtp_port == 587
    assert s.otp_debug_log is False
    assert s.smtp_configured is False
    assert s.cors_origins == ("http://localhost:5173",)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("SMTP_USER", "mailer@x.com")
    monkeypatch.setenv("SMTP_PASS", "pw")
    monkeypatch.setenv("OTP_DEBUG_LOG", "true")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    s = Settings.from_env()
    assert s.smtp_configured
    assert s.mail_from == '"HD Notes" <mailer@x.com>'
    assert s.otp_debug_log is True
    assert s.cors_origins == ("http://a.test", "http://b.test")


def test_debug_otp_log_is_refused_in_production(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("OTP_DEBUG_LOG", "1")
    with pytest.raises(ConfigError, match="OTP_DEBUG_LOG"):
        Settings.from_env()


def test_bad_integer_is_a_config_error(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("OTP_TTL_MINUTES", "five")
    with pytest.raises(ConfigError) as ei:
        Settings.from_env()
    assert ei.value.__cause__ is None
    assert ei.value.__suppress_context__
