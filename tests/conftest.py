"""
Pytest configuration and fixtures for stockroom tests.
"""

import pytest
from sqlalchemy.pool import StaticPool

from shared.config.settings import settings
from shared.infrastructure.db import create_db_engine
from shared.security.password import hash_password
from stockroom.core.context import SessionContext
from stockroom.core.registry import SingletonRegistry
from stockroom.models import Category, Employee, Item
from stockroom.services.audit import AuditLogService
from stockroom.services.crud import EntityManager, SqlAlchemyStore


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    """bcrypt at the minimum cost factor; the default makes every hash take ~250ms."""
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)
    monkeypatch.setattr(settings, "audit_enabled", True)


@pytest.fixture(scope="function")
def engine():
    """
    Fresh in-memory database per test.
    StaticPool keeps the single connection alive, so every session sees the same data.
    """
    engine = create_db_engine(SQLALCHEMY_DATABASE_URL, poolclass=StaticPool)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def store(engine):
    store = SqlAlchemyStore(engine)
    store.open()
    yield store
    store.close()


@pytest.fixture
def entity_manager(store):
    return EntityManager(store)


@pytest.fixture
def registry(store, entity_manager):
    """
    A private registry wired like production: one store, one facade,
    one audit log, and an empty session.
    """
    registry = SingletonRegistry()
    registry.get(SqlAlchemyStore, store)
    registry.get(EntityManager, entity_manager)
    registry.get(AuditLogService, AuditLogService(entity_manager, registry=registry))
    registry.get(SessionContext, SessionContext())
    yield registry
    registry.reset()


@pytest.fixture
def audit_log(registry):
    return registry.get(AuditLogService)


class RaisingEntityManager:
    """Facade stand-in whose writes blow up, as a dead database would."""

    def upsert(self, entity):
        raise RuntimeError("disk full")


@pytest.fixture
def broken_audit_log(registry):
    return AuditLogService(RaisingEntityManager(), registry=registry)


@pytest.fixture
def persist(store):
    """
    Insert rows directly, bypassing the facade.
    Needed for fixed ids, which upsert never inserts.
    """

    def _persist(*entities):
        def add_all(session):
            session.add_all(entities)
            session.flush()

        store.execute_write(add_all)
        return entities[0] if len(entities) == 1 else entities

    return _persist


@pytest.fixture
def seed_employee(persist):
    """Employee a@x.com with password "secret"."""
    return persist(
        Employee(
            id=12,
            email="a@x.com",
            password=hash_password("secret"),
            first_name="Ana",
            last_name="Ruiz",
        )
    )


@pytest.fixture
def seed_category(persist):
    return persist(Category(category="Beverages"))


@pytest.fixture
def seed_item(persist, seed_category):
    """Item #7, "Tea", in Beverages."""
    return persist(
        Item(
            id=7,
            name="Tea",
            category=seed_category,
            price=2.5,
            arrival_price=1.2,
            quantity=10,
        )
    )
