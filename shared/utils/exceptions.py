"""
Centralized exceptions for programmer errors and bad input.

Absence of data is never an exception: lookups return an Outcome with
found=False. Storage failures are converted to failed outcomes at the
persistence facade. What remains here are errors that can only come
from a coding mistake (wrong field for a type, unmapped class, a
registry type without a zero-argument constructor) and input
validation errors raised by the outer layers.

Usage:
    from shared.utils.exceptions import InvalidFieldReferenceError

    raise InvalidFieldReferenceError("Item", "colour")
"""

from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(Exception):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging.
    """

    def __init__(
        self,
        detail: str,
        log_level: str = "error",
        **log_context: Any,
    ):
        self.detail = detail
        self.context = log_context

        log_fn = getattr(logger, log_level, logger.error)
        log_fn(detail, **log_context)

        super().__init__(detail)


# =============================================================================
# Programmer errors (raised, never converted to outcomes)
# =============================================================================


class InvalidFieldReferenceError(AppException):
    """
    A field reference used against a type it does not belong to,
    or a field/association name the type does not declare.

    Usage:
        raise InvalidFieldReferenceError("Item", "colour")
        raise InvalidFieldReferenceError("Item", "email", reason="declared on Employee")
    """

    def __init__(self, entity: str, field_name: str, reason: str | None = None, **log_context: Any):
        detail = f"Invalid field reference {entity}.{field_name}"
        if reason:
            detail = f"{detail}: {reason}"

        super().__init__(detail, entity=entity, field=field_name, **log_context)


class UnmappedEntityError(AppException):
    """Object or class handed to the persistence facade is not a mapped entity."""

    def __init__(self, obj: Any, reason: str | None = None, **log_context: Any):
        name = obj.__name__ if isinstance(obj, type) else type(obj).__name__
        detail = f"{name} is not a mapped entity type"
        if reason:
            detail = f"{name} cannot be handled: {reason}"
        super().__init__(detail, entity=name, **log_context)


class RegistryError(AppException):
    """Misuse of the singleton registry."""

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(detail, log_level="critical", **log_context)


class MissingConstructorError(RegistryError):
    """Type requested from the registry cannot be built without arguments."""

    def __init__(self, cls: type, reason: str | None = None, **log_context: Any):
        detail = f"{cls.__qualname__} has no accessible zero-argument constructor"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail, type=cls.__qualname__, **log_context)


# =============================================================================
# Input errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error.

    Usage:
        raise ValidationError("Price must be positive", field="price", value=-1)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(detail, log_level="warning", **log_context)
