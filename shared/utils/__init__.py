"""
Utilities module: Exceptions.
"""

from shared.utils.exceptions import (
    AppException,
    InvalidFieldReferenceError,
    UnmappedEntityError,
    RegistryError,
    MissingConstructorError,
    ValidationError,
)

__all__ = [
    "AppException",
    "InvalidFieldReferenceError",
    "UnmappedEntityError",
    "RegistryError",
    "MissingConstructorError",
    "ValidationError",
]
