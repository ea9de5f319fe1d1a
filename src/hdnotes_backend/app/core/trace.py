# src/hdnotes_backend/app/core/trace.py
from __future__ import annotations
import logging
import os
import time
from typing import Any, Mapping

_log = logging.getLogger("hdnotes.auth")

def _enabled() -> bool:
    return (os.getenv("AUTH_TRACE", "")).lower() in ("1", "true", "yes", "on")

def _fmt_kv(d: Mapping[str, Any]) -> str:
    return " ".join(f"{k}={d[k]}" for k in d)

def mask_email(email: str | None) -> str:
    """ann@x.com -> ann***@x.com"""
    if not email or "@" not in email:
        return "<none>"
    local, domain = email.split("@", 1)
    return f"{local[:3]}***@{domain}"

def auth_trace(event: str, **kv: Any) -> None:
    """
    Emit a single-line structured log ONLY when AUTH_TRACE=true.
    Example:
      [auth] otp.issued ts=... email=ann***@x.com purpose=signup
    """
    if not _enabled():
        return
    kv2 = {"ts": int(time.time()), **kv}
    _log.info("[auth] %s %s", event, _fmt_kv(kv2))
