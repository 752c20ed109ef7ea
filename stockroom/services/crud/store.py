"""
Row store: the storage seam under the persistence facade.

The facade only ever talks to a RowStore:

    store.open()                          # connect / create schema
    rows = store.execute_query(select(Item).where(Item.name == "Tea"))
    result = store.execute_write(lambda session: ...)   # one transaction
    store.close()

SqlAlchemyStore is the concrete engine-backed implementation. Any
SQLAlchemy URL works; the default comes from settings.database_url.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy import MetaData
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from shared.config.logging import get_logger
from shared.infrastructure.db import create_session_factory, get_engine

logger = get_logger(__name__)

R = TypeVar("R")


class RowStore(ABC):
    """Abstract storage interface (open / execute_query / execute_write / close)."""

    @abstractmethod
    def open(self) -> None:
        """Make the store ready for use. Safe to call more than once."""
        ...

    @abstractmethod
    def execute_query(self, statement: Select) -> list[Any]:
        """Run a read-only ORM select and return the entities."""
        ...

    @abstractmethod
    def execute_write(self, work: Callable[[Session], R]) -> R:
        """
        Run work inside one transaction.

        Commits when work returns, rolls back and re-raises when it raises.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release connections."""
        ...


class SqlAlchemyStore(RowStore):
    """
    RowStore backed by a SQLAlchemy engine.

    Every call uses its own short-lived session (connection-per-call), so
    the store can be shared between threads. Entities returned by a call
    are detached but keep their loaded attributes.
    """

    def __init__(
        self,
        engine: Engine | None = None,
        metadata: MetaData | None = None,
    ):
        if metadata is None:
            from stockroom.models import Base

            metadata = Base.metadata

        self._engine = engine or get_engine()
        self._metadata = metadata
        self._session_factory = create_session_factory(self._engine)
        self._opened = False
        self._open_lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        return self._engine

    def open(self) -> None:
        """Create missing tables once."""
        if self._opened:
            return
        with self._open_lock:
            if self._opened:
                return
            self._metadata.create_all(self._engine)
            self._opened = True
            logger.info(
                "Row store opened",
                backend=self._engine.url.get_backend_name(),
                tables=len(self._metadata.tables),
            )

    def execute_query(self, statement: Select) -> list[Any]:
        self.open()
        with self._session_factory() as session:
            return list(session.execute(statement).unique().scalars().all())

    def execute_write(self, work: Callable[[Session], R]) -> R:
        self.open()
        with self._session_factory() as session:
            with session.begin():
                return work(session)

    def close(self) -> None:
        self._engine.dispose()
        self._opened = False
        logger.info("Row store closed")
