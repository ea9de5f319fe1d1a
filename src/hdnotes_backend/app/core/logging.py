# src/hdnotes_backend/app/core/logging.py
from __future__ import annotations
import logging
import os

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR":    logging.ERROR,
    "WARNING":  logging.WARNING,
    "INFO":     logging.INFO,
    "DEBUG":    logging.DEBUG,
}

def level_from_env(var: str = "LOG_LEVEL", default: str = "INFO") -> int:
    val = (os.getenv(var, default) or "").strip().upper()
    return _LEVELS.get(val, _LEVELS[default])

def setup_logging(level: int | None = None) -> None:
    """
    Configure root logging once. Idempotent.
    LOG_LEVEL controls verbosity (default INFO) unless an explicit level is given.
    """
    if level is None:
        level = level_from_env()

    root = logging.getLogger()
    if root.handlers:
        # already configured (pytest, uvicorn, etc.)
        root.setLevel(level)
        return

    fmt = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s %(message)s"
    datefmt = "%Y-%m-%dT%H:%M:%S"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))

    root.setLevel(level)
    root.addHandler(handler)
