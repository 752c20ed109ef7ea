"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns.
"""

import os
from functools import lru_cache

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from shared.config.settings import settings


def _calculate_pool_size() -> int:
    """
    Calculate pool size based on CPU cores.
    Formula: (2 * CPU cores) + 1, capped at 20 for reasonable limits.
    """
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, **engine_kwargs) -> Engine:
    """
    Create an engine for the given URL.

    Server databases get connection pooling and timeouts. SQLite gets
    foreign key enforcement, which it leaves off by default.

    Args:
        database_url: SQLAlchemy URL.
        **engine_kwargs: Overrides passed straight to create_engine
            (tests use poolclass=StaticPool).

    Returns:
        Configured Engine.
    """
    url = make_url(database_url)
    options: dict = {"echo": settings.db_echo}

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_pre_ping=True,  # Verify connections before using
            pool_size=_calculate_pool_size(),
            max_overflow=15,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=1800,  # Recycle connections after 30 minutes
        )

    options.update(engine_kwargs)
    engine = create_engine(url, **options)

    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """
    Session factory for the given engine.

    Instances stay readable after their session closes, because
    every facade call uses its own short-lived session.
    """
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


@lru_cache
def get_engine() -> Engine:
    """Get the cached engine for settings.database_url."""
    return create_db_engine(settings.database_url)
