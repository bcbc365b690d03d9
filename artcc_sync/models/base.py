"""
SQLAlchemy base configuration and session management.

Uses SQLAlchemy 2.0 style with type hints and declarative base.
Designed to be portable between SQLite (dev) and PostgreSQL (prod).
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from artcc_sync.config import config


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _set_sqlite_pragma(dbapi_connection, connection_record):
    """
    Configure SQLite for concurrent reads during snapshot swaps.

    WAL mode lets API readers keep seeing the previous snapshot while
    the poller's clear+repopulate transaction is in flight.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA journal_mode=WAL')
    cursor.execute('PRAGMA synchronous=NORMAL')
    cursor.close()


def build_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine with the options appropriate for the database type."""
    if url.startswith('sqlite'):
        kwargs.setdefault('connect_args', {'check_same_thread': False})

    new_engine = create_engine(url, echo=echo, **kwargs)

    if url.startswith('sqlite') and ':memory:' not in url and url != 'sqlite://':
        event.listen(new_engine, 'connect', _set_sqlite_pragma)

    return new_engine


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,  # Avoid lazy loading issues
    )


engine = build_engine(config.database.url, echo=config.debug)

# Session factory
SessionLocal = build_session_factory(engine)


def init_db(bind: Engine = None) -> None:
    """
    Initialize database schema.

    Creates all tables if they don't exist.
    """
    Base.metadata.create_all(bind=bind or engine)
