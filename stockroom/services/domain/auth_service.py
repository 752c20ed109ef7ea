"""
Auth Service.

Handles employee login/logout and employee account creation.

On a successful login the registry's SessionContext is rebound to a
context carrying the employee, and a "login" entry is audited under that
employee. Nothing is rebound when the password does not match.

Usage:
    from stockroom.services.domain import AuthService

    result = AuthService().login("a@x.com", "secret")
    if result.ok:
        open_main_screen(result.employee)
    else:
        show_alert(result.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from shared.config.constants import AuditAction, Roles
from shared.config.logging import get_logger, mask_email
from shared.security.password import hash_password, needs_rehash, verify_password
from shared.utils.exceptions import ValidationError
from stockroom.core.context import SessionContext
from stockroom.core.fields import field
from stockroom.core.registry import SingletonRegistry, registry as default_registry
from stockroom.models import Employee
from stockroom.services.audit import AuditLogService
from stockroom.services.crud.entity_manager import EntityManager

logger = get_logger(__name__)


class LoginStatus(str, Enum):
    OK = "OK"
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    ERROR = "ERROR"


_MESSAGES = {
    LoginStatus.OK: "Welcome",
    LoginStatus.MISSING_CREDENTIALS: "Enter both user and password",
    LoginStatus.USER_NOT_FOUND: "User not found",
    LoginStatus.INVALID_PASSWORD: "Invalid password",
    LoginStatus.ERROR: "An error occurred during login",
}


@dataclass(frozen=True)
class LoginResult:
    status: LoginStatus
    employee: Optional[Employee] = None

    @property
    def ok(self) -> bool:
        return self.status is LoginStatus.OK

    @property
    def message(self) -> str:
        return _MESSAGES[self.status]


class AuthService:
    """Employee authentication against bcrypt hashes stored in employee.password."""

    def __init__(
        self,
        entity_manager: Optional[EntityManager] = None,
        audit_log: Optional[AuditLogService] = None,
        registry: Optional[SingletonRegistry] = None,
    ):
        self._registry = registry or default_registry
        self._em = entity_manager or self._registry.get(EntityManager)
        self._audit = audit_log or self._registry.get(AuditLogService)

    def login(self, email: str, password: str) -> LoginResult:
        """
        Check credentials and start a session.

        Args:
            email: Employee email (case and surrounding whitespace ignored).
            password: Plain text password.

        Returns:
            LoginResult; only status OK rebinds the session.
        """
        email = (email or "").strip().lower()
        if not email or not password:
            return LoginResult(LoginStatus.MISSING_CREDENTIALS)

        found, employee = self._em.find_one_by_field(Employee, field(Employee, "email"), email)
        if not found:
            logger.info("Login rejected: unknown email", email=mask_email(email))
            self._audit.record(AuditAction.LOGIN_FAILED, f"unknown email {mask_email(email)}")
            return LoginResult(LoginStatus.USER_NOT_FOUND)

        try:
            password_ok = verify_password(password, employee.password)
        except Exception:
            logger.error("Password verification raised", employee_id=employee.id, exc_info=True)
            return LoginResult(LoginStatus.ERROR)

        if not password_ok:
            logger.info("Login rejected: bad password", employee_id=employee.id)
            self._audit.record(AuditAction.LOGIN_FAILED, f"bad password for employee {employee.id}")
            return LoginResult(LoginStatus.INVALID_PASSWORD)

        if needs_rehash(employee.password):
            self._rehash(employee, password)

        self._registry.get(SessionContext, SessionContext(employee=employee))
        logger.info("Employee logged in", employee_id=employee.id, email=mask_email(email))
        self._audit.record(AuditAction.LOGIN, "")
        return LoginResult(LoginStatus.OK, employee)

    def _rehash(self, employee: Employee, password: str) -> None:
        """Re-store the password under the configured bcrypt cost. Failure keeps the old hash."""
        old_hash = employee.password
        employee.password = hash_password(password)
        if not self._em.upsert(employee).found:
            employee.password = old_hash
            logger.warning("Password rehash not stored", employee_id=employee.id)
            return
        logger.info("Password rehashed", employee_id=employee.id)

    def logout(self) -> None:
        """End the session; later audit entries carry no employee."""
        context = self._registry.get(SessionContext)
        if context.is_authenticated:
            self._audit.record(AuditAction.LOGOUT, "")
            logger.info("Employee logged out", employee_id=context.employee_id)
        self._registry.get(SessionContext, SessionContext())

    def current_employee(self) -> Optional[Employee]:
        return self._registry.get(SessionContext).employee

    def register_employee(
        self,
        email: str,
        password: str,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
        role: str = Roles.CASHIER,
    ) -> Optional[Employee]:
        """
        Create an employee with a hashed password.

        Raises:
            ValidationError: Missing email/password, unknown role or duplicate email.

        Returns:
            The stored employee, or None if the store rejected it.
        """
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationError("A valid email is required", field="email")
        if not password:
            raise ValidationError("A password is required", field="password")
        if role not in Roles.ALL:
            raise ValidationError(f"Unknown role {role}", field="role", value=role)

        if self._em.find_one_by_field(Employee, field(Employee, "email"), email).found:
            raise ValidationError("An employee with that email already exists", email=mask_email(email))

        employee = Employee(
            email=email,
            password=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        found, stored = self._em.upsert(employee)
        if not found:
            return None

        logger.info("Employee created", employee_id=stored.id, role=role)
        return stored
