"""
Infrastructure module: Database engine and session factory.
"""

from shared.infrastructure.db import (
    create_db_engine,
    create_session_factory,
    get_engine,
)

__all__ = [
    "create_db_engine",
    "create_session_factory",
    "get_engine",
]
