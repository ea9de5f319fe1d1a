# src/hdnotes_backend/app/db/session.py
from __future__ import annotations

from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


# ------------------------------------------------------------
# Base class for ORM models
# ------------------------------------------------------------
class Base(DeclarativeBase):
    """Base for all ORM models."""
    pass


# ------------------------------------------------------------
# Engine + session factory
# ------------------------------------------------------------
def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """
    Create the SQLAlchemy engine for DATABASE_URL.
    In-memory SQLite gets a single shared connection so every request
    thread sees the same database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False, class_=Session)


def init_models(engine: Engine) -> None:
    """
    Creates all tables defined in the ORM models.
    Safe to run multiple times (CREATE IF NOT EXISTS behavior).
    """
    from . import models  # noqa: F401  ensure model classes are registered

    Base.metadata.create_all(engine)


# ------------------------------------------------------------
# FastAPI DB dependency
# ------------------------------------------------------------
def get_db(request: Request) -> Iterator[Session]:
    """
    Provides a SQLAlchemy session per request.
    Ensures proper cleanup after the request.
    """
    factory = request.app.state.session_factory
    with factory() as session:
        yield session
