"""
Core building blocks shared by every service.

- outcome: Outcome, the (found, value) result shape
- fields: FieldRef, FieldTable, field()
- registry: SingletonRegistry, registry, get_instance()
- context: SessionContext (who is logged in)
- dependencies: getters for the shared store, facade and audit log
"""

from .outcome import Outcome
from .fields import FieldRef, FieldTable, field, field_table
from .registry import SingletonRegistry, registry, get_instance
from .context import SessionContext

__all__ = [
    "Outcome",
    "FieldRef",
    "FieldTable",
    "field",
    "field_table",
    "SingletonRegistry",
    "registry",
    "get_instance",
    "SessionContext",
]
