# src/hdnotes_backend/app/core/errors.py
"""
Error taxonomy for the auth and notes services.

Every error carries the HTTP status it maps to and a message that is safe to
show to the client. The FastAPI handlers in main.py turn them into
{"error": message} responses.
"""
from __future__ import annotations

from typing import Optional


class ConfigError(RuntimeError):
    """Raised at startup when the environment cannot produce valid settings."""


class AppError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    message = "Invalid request"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class ExpiredError(AppError):
    status_code = 400
    message = "OTP expired"


class RateLimitedError(AppError):
    status_code = 429
    message = "Too many OTP attempts"


class InvalidCodeError(AppError):
    status_code = 400
    message = "Invalid OTP"


class AuthFailedError(AppError):
    status_code = 401
    message = "Google auth failed"


class InvalidTokenError(AppError):
    status_code = 401
    message = "Invalid token"


class DependencyError(AppError):
    status_code = 500
    message = "Service unavailable"
