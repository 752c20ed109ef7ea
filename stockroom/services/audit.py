"""
Audit logging service.
Records what the logged-in employee did, for later review.

Auditing is best-effort: a failed write is logged to the operational
log and dropped. record() never raises, so a broken audit table cannot
abort the business operation that triggered it.
"""

from __future__ import annotations

from typing import Optional

from shared.config.constants import Limits
from shared.config.logging import get_logger
from shared.config.settings import settings
from stockroom.core.context import SessionContext
from stockroom.core.fields import field
from stockroom.core.outcome import Outcome
from stockroom.core.registry import SingletonRegistry, registry as default_registry
from stockroom.models import Employee, EmployeeLog
from stockroom.services.crud.entity_manager import EntityManager

logger = get_logger(__name__)


class AuditLogService:
    """
    Append-only action log keyed by the session identity.

    The identity is read from the registry at record time, so entries
    written after a login are attributed to the new employee.
    """

    def __init__(
        self,
        entity_manager: Optional[EntityManager] = None,
        registry: Optional[SingletonRegistry] = None,
    ):
        self._registry = registry or default_registry
        self._entity_manager = entity_manager

    @property
    def entity_manager(self) -> EntityManager:
        # Resolved lazily: the audit log is often created before the store is configured
        if self._entity_manager is None:
            self._entity_manager = self._registry.get(EntityManager)
        return self._entity_manager

    def record(self, message: str, detail: str = "") -> bool:
        """
        Append one entry for the current employee.

        Args:
            message: Short action name (see AuditAction).
            detail: Free text, truncated to Limits.MAX_AUDIT_DETAIL_LENGTH.

        Returns:
            True if the entry was stored, False otherwise. Never raises.
        """
        if not settings.audit_enabled:
            return False

        try:
            employee_id = self._registry.get(SessionContext).employee_id
            entry = EmployeeLog(
                employee_id=employee_id,
                action=message,
                detail=(detail or "")[: Limits.MAX_AUDIT_DETAIL_LENGTH],
            )
            outcome = self.entity_manager.upsert(entry)
        except Exception:
            logger.error("Audit log write raised; entry dropped", action=message, exc_info=True)
            return False

        if not outcome.found:
            logger.error("Audit log write failed; entry dropped", action=message)
            return False

        logger.debug("Audit entry recorded", action=message, employee_id=employee_id)
        return True

    def entries_for(self, employee: Employee) -> Outcome[list[EmployeeLog]]:
        """All entries attributed to employee, oldest first."""
        return self.entity_manager.find_all_by_field(
            EmployeeLog, field(EmployeeLog, "employee_id"), employee.id
        )
