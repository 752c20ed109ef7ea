"""
Session context: who is logged in.

The context object is immutable; logging in or out replaces it in the
registry instead of mutating it, so a reader holding the old context
keeps a consistent view.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from stockroom.models import Employee


@dataclass(frozen=True)
class SessionContext:
    """The session identity. Default-constructed means nobody is logged in."""

    employee: Optional["Employee"] = None

    @property
    def employee_id(self) -> int | None:
        if self.employee is None:
            return None
        return self.employee.id

    @property
    def is_authenticated(self) -> bool:
        return self.employee_id is not None

    @property
    def email(self) -> str | None:
        return self.employee.email if self.employee is not None else None
