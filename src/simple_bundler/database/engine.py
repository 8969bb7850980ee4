"""Database engine and session management."""

import os
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from simple_bundler.models.db_models import Base

DEFAULT_DB_PATH = Path(__file__).parent.parent.parent.parent / "data" / "simple_bundler.db"

DB_PATH_ENV = "SIMPLE_BUNDLER_DB_PATH"


def _get_db_path() -> Path:
    """Get database path from environment variable or default."""
    env_path = os.environ.get(DB_PATH_ENV)
    return Path(env_path) if env_path else DEFAULT_DB_PATH


def get_database_url(db_path: Path | None = None) -> str:
    """Get database URL from environment or construct from path.

    Priority:
        1. DATABASE_URL environment variable
        2. Explicit db_path argument
        3. SIMPLE_BUNDLER_DB_PATH environment variable
        4. Default path (data/simple_bundler.db)
    """
    if url := os.environ.get("DATABASE_URL"):
        return url
    return f"sqlite:///{db_path or _get_db_path()}"


def _enable_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    # Component rows rely on ON DELETE CASCADE
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def get_engine(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """Get or create the SQLAlchemy engine.

    SQLite databases get foreign keys and WAL mode enabled on every
    connection; tables are created on first use.

    Args:
        db_path: Path to SQLite database file. Defaults to data/simple_bundler.db.
        echo: Whether to echo SQL statements.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine

    if _engine is not None:
        return _engine

    path_obj = Path(db_path) if db_path else None
    database_url = get_database_url(db_path=path_obj)
    engine_kwargs: dict[str, object] = {"echo": echo}

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if not os.environ.get("DATABASE_URL"):
            (path_obj or _get_db_path()).parent.mkdir(parents=True, exist_ok=True)
    else:
        engine_kwargs["pool_size"] = 5
        engine_kwargs["pool_recycle"] = 3600

    _engine = create_engine(database_url, **engine_kwargs)
    if database_url.startswith("sqlite"):
        event.listen(_engine, "connect", _enable_sqlite_pragmas)

    Base.metadata.create_all(_engine)
    return _engine


def get_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Get or create the session factory."""
    global _SessionLocal

    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=engine or get_engine()
        )
    return _SessionLocal


@contextmanager
def get_session(engine: Engine | None = None) -> Generator[Session, None, None]:
    """Get a database session as a context manager.

    Args:
        engine: SQLAlchemy engine. If None, uses default engine.

    Yields:
        Database session.
    """
    session = get_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


def init_db(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """Initialize the database, creating all tables."""
    return get_engine(db_path, echo)


def reset_engine() -> None:
    """Reset the global engine and session factory. Useful for testing."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
