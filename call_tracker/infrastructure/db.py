"""Database infrastructure setup."""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from call_tracker.infrastructure.config.settings import settings

# Created on first use so the in-memory backend never needs DATABASE_URL
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """
    Get or create the shared engine.

    Returns:
        SQLAlchemy engine bound to DATABASE_URL

    Raises:
        ValueError: If DATABASE_URL is not configured
    """
    global _engine
    if _engine is None:
        if not settings.database_url:
            raise ValueError("DATABASE_URL is required when REPOSITORY_BACKEND=postgres")
        _engine = create_engine(
            settings.database_url,
            pool_pre_ping=True,
            pool_size=settings.database_pool_size,
            echo=settings.debug_mode,
        )
    return _engine


def get_db_session() -> Session:
    """
    Get a database session.

    Callers own the session and must close it.

    Returns:
        SQLAlchemy session instance
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _session_factory()


def dispose_engine() -> None:
    """Close pooled connections (application shutdown)."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
