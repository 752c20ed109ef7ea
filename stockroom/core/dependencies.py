"""
Shared service getters.

Every getter resolves through the process-wide singleton registry, so
all business services share one store, one persistence facade and one
audit log. Tests rebind these types on a fresh registry instead of
patching module globals.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from stockroom.core.context import SessionContext
from stockroom.core.registry import registry

if TYPE_CHECKING:
    from stockroom.services.audit import AuditLogService
    from stockroom.services.crud.entity_manager import EntityManager
    from stockroom.services.crud.store import SqlAlchemyStore


def get_store() -> "SqlAlchemyStore":
    """Singleton row store (settings.database_url)."""
    from stockroom.services.crud.store import SqlAlchemyStore

    return registry.get(SqlAlchemyStore)


def get_entity_manager() -> "EntityManager":
    """Singleton persistence facade."""
    from stockroom.services.crud.entity_manager import EntityManager

    return registry.get(EntityManager)


def get_audit_log() -> "AuditLogService":
    """Singleton audit log."""
    from stockroom.services.audit import AuditLogService

    return registry.get(AuditLogService)


def get_session_context() -> SessionContext:
    """The current session identity (empty before login)."""
    return registry.get(SessionContext)


def current_employee_id() -> int | None:
    """Logged-in employee id, for log records."""
    return registry.get(SessionContext).employee_id
