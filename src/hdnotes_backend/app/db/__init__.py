# src/hdnotes_backend/app/db/__init__.py

"""
Lightweight DB package init.

Models are not re-exported here to avoid circular imports.
Other modules should import models directly from app.db.models.
"""

from .session import Base, build_engine, get_db, init_models, make_session_factory

__all__ = ["Base", "build_engine", "get_db", "init_models", "make_session_factory"]
