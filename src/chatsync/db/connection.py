"""
Database connection management for chatsync.

Provides engine creation, session factories, and transaction handling for
the progress store. The store is a SQLite file by default so that progress
survives between scheduled runs.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from chatsync.models.db import Base


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the progress store.

    For SQLite file URLs the parent directory is created first.

    Args:
        database_url: SQLAlchemy URL (e.g. ``sqlite:///path/to/db``)
        echo: Log emitted SQL

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    if database_url.startswith("sqlite:///") and ":memory:" not in database_url:
        db_path = Path(database_url.removeprefix("sqlite:///"))
        db_path.parent.mkdir(parents=True, exist_ok=True)

    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to ``engine``."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


@contextmanager
def transaction(
    session_factory: sessionmaker[Session],
) -> Generator[Session, None, None]:
    """
    Context manager for explicit transaction handling.

    Yields:
        Session: A SQLAlchemy session

    Example:
        >>> with transaction(factory) as db:
        >>>     db.add(SyncRecord(conversation_id="c1", remote_ticket_id=7))
        >>>     # Commits automatically on success
        >>>     # Rolls back on exception
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """
    Create all tables that do not exist yet.

    Safe to call on every run; existing tables and data are untouched.
    """
    Base.metadata.create_all(bind=engine)

