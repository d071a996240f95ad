"""Database configuration and setup."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def get_engine(database_url: str, **kwargs) -> Engine:
    """Create engine for the local product database."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})

    return create_engine(
        database_url,
        echo=False,
        future=True,
        pool_pre_ping=True,
        **kwargs,
    )


def get_session_factory(engine: Engine):
    """Create session factory."""
    return sessionmaker(
        engine,
        expire_on_commit=False,
        future=True,
    )


def init_db(engine: Engine) -> None:
    """Create tables owned by this service (the sync log)."""
    # Import models so they register on Base.metadata
    from shopee_sync.db import models  # noqa: F401

    Base.metadata.create_all(engine)
