"""
Tests for AuditLogService.

Tests cover:
- Attribution to the employee in the registry at record time
- Storage failures swallowed
- Disabled auditing
"""

from shared.config.settings import settings
from stockroom.core.context import SessionContext
from stockroom.core.outcome import Outcome
from stockroom.models import EmployeeLog
from stockroom.services.audit import AuditLogService


class BrokenEntityManager:
    """Facade stand-in whose writes fail or blow up."""

    def __init__(self, raise_error=False):
        self.raise_error = raise_error
        self.calls = 0

    def upsert(self, entity):
        self.calls += 1
        if self.raise_error:
            raise RuntimeError("disk full")
        return Outcome.none()


class TestAuditRecord:

    def test_record_without_session(self, audit_log, entity_manager):
        assert audit_log.record("startup", "cold start") is True

        found, entries = entity_manager.find_all(EmployeeLog)
        assert found
        assert entries[0].action == "startup"
        assert entries[0].detail == "cold start"
        assert entries[0].employee_id is None

    def test_record_reads_session_at_record_time(self, audit_log, registry, seed_employee):
        audit_log.record("before login")
        registry.get(SessionContext, SessionContext(employee=seed_employee))
        audit_log.record("after login")

        _, entries = audit_log.entries_for(seed_employee)
        assert [e.action for e in entries] == ["after login"]
        assert entries[0].employee.email == "a@x.com"

    def test_detail_is_truncated(self, audit_log, entity_manager):
        audit_log.record("long", "x" * 5000)
        _, entries = entity_manager.find_all(EmployeeLog)
        assert len(entries[0].detail) == 2000

    def test_failed_write_returns_false(self, registry):
        broken = BrokenEntityManager()
        audit = AuditLogService(broken, registry=registry)
        assert audit.record("login") is False
        assert broken.calls == 1

    def test_raised_error_is_swallowed(self, registry):
        audit = AuditLogService(BrokenEntityManager(raise_error=True), registry=registry)
        assert audit.record("login") is False

    def test_unknown_employee_is_swallowed(self, audit_log, registry, entity_manager):
        class Ghost:
            id = 999
            email = "ghost@x.com"

        # employee_log.employee_id -> employee.id is enforced
        registry.get(SessionContext, SessionContext(employee=Ghost()))
        assert audit_log.record("login") is False
        assert entity_manager.find_all(EmployeeLog) == Outcome(False, [])

    def test_disabled(self, audit_log, entity_manager, monkeypatch):
        monkeypatch.setattr(settings, "audit_enabled", False)
        assert audit_log.record("login") is False
        assert not entity_manager.find_all(EmployeeLog).found
