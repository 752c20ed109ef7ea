"""
Generic data access.

Provides:
- RowStore / SqlAlchemyStore: storage seam (open / execute_query / execute_write / close)
- EntityManager: field, id and join lookups, upsert, delete-by-id, cascade-nullify
"""

from .store import RowStore, SqlAlchemyStore
from .entity_manager import EntityManager, identity_key, identity_of

__all__ = [
    "RowStore",
    "SqlAlchemyStore",
    "EntityManager",
    "identity_key",
    "identity_of",
]
