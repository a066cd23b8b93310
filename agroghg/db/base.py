"""
Database base configuration and utilities for the emission factor store
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from agroghg.config import get_config

# Create declarative base
Base = declarative_base()

# Global engine and session factory
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_database_url() -> str:
    """
    Get database URL from AGROGHG_DATABASE_URL (sqlite:///agroghg.db by default)

    Returns:
        Database connection URL
    """
    return get_config().database_url


def create_db_engine(database_url: str, **kwargs) -> Engine:
    """
    Create a new SQLAlchemy engine

    Args:
        database_url: Database URL
        **kwargs: Additional engine configuration

    Returns:
        SQLAlchemy Engine
    """
    echo = kwargs.get("echo", False)

    if database_url.startswith("sqlite"):
        engine_config = {
            "connect_args": {"check_same_thread": False},
            "echo": echo,
        }
        # In-memory databases live in a single connection
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://"):
            engine_config["poolclass"] = StaticPool
        return create_engine(database_url, **engine_config)

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=kwargs.get("pool_size", 5),
        max_overflow=kwargs.get("max_overflow", 10),
        pool_timeout=kwargs.get("pool_timeout", 30),
        pool_recycle=kwargs.get("pool_recycle", 3600),
        echo=echo,
    )


def get_engine(database_url: Optional[str] = None, **kwargs) -> Engine:
    """
    Get SQLAlchemy engine (singleton)

    Args:
        database_url: Optional database URL (uses configuration if not provided)
        **kwargs: Additional engine configuration

    Returns:
        SQLAlchemy Engine
    """
    global _engine

    if _engine is None:
        _engine = create_db_engine(database_url or get_database_url(), **kwargs)

    return _engine


def get_session_factory(engine: Optional[Engine] = None) -> sessionmaker:
    """
    Get session factory

    A factory bound to an explicit engine is created on each call; without an
    engine the process-wide singleton is used.

    Args:
        engine: Optional SQLAlchemy engine

    Returns:
        Session factory
    """
    global _SessionLocal

    if engine is not None:
        return sessionmaker(autocommit=False, autoflush=False, bind=engine)

    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())

    return _SessionLocal


@contextmanager
def get_session(engine: Optional[Engine] = None) -> Generator[Session, None, None]:
    """
    Get database session context manager

    Args:
        engine: Optional SQLAlchemy engine

    Yields:
        Database session
    """
    SessionLocal = get_session_factory(engine)
    session = SessionLocal()

    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Optional[Engine] = None, drop_all: bool = False) -> None:
    """
    Initialize database (create all tables)

    Args:
        engine: Optional SQLAlchemy engine
        drop_all: If True, drop all tables first
    """
    # Register models on Base.metadata
    from agroghg.db import models  # noqa: F401

    eng = engine or get_engine()

    if drop_all:
        Base.metadata.drop_all(bind=eng)

    Base.metadata.create_all(bind=eng)


def reset_engine() -> None:
    """Reset engine singleton (useful for testing)"""
    global _engine, _SessionLocal

    if _engine:
        _engine.dispose()
        _engine = None

    _SessionLocal = None
