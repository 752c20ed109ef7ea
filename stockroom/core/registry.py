"""
Process-wide typed singleton registry.

One shared instance per type, created lazily with the type's
zero-argument constructor, and rebindable:

    manager = get_instance(EntityManager)            # created once, shared
    get_instance(SessionContext, SessionContext(employee))  # rebind on login
    get_instance(SessionContext).employee_id          # sees the rebound value

A single re-entrant lock serializes every lookup, construction and
rebind. Construction runs under the lock, so two threads asking for the
same type concurrently still get one instance, and a rebind is never
observed half-done. Re-entrancy lets a constructor ask the registry for
its own collaborators (EntityManager() asks for the store).
"""

from __future__ import annotations

import inspect
import threading
from typing import Any, TypeVar, overload

from shared.config.logging import get_logger
from shared.utils.exceptions import MissingConstructorError, RegistryError

logger = get_logger(__name__)

T = TypeVar("T")

_MISSING: Any = object()


class SingletonRegistry:
    """Type-keyed, rebindable instance store."""

    def __init__(self) -> None:
        self._instances: dict[type, Any] = {}
        self._lock = threading.RLock()

    @overload
    def get(self, cls: type[T]) -> T: ...

    @overload
    def get(self, cls: type[T], value: T) -> T: ...

    def get(self, cls: type[T], value: T = _MISSING) -> T:
        """
        Return the shared instance of cls, or rebind it when value is given.

        Args:
            cls: The type used as key.
            value: Instance to store for cls, replacing any previous one.

        Returns:
            The instance now registered for cls.

        Raises:
            MissingConstructorError: cls cannot be built without arguments.
            RegistryError: value is not an instance of cls.
        """
        if value is not _MISSING:
            return self._rebind(cls, value)

        with self._lock:
            instance = self._instances.get(cls, _MISSING)
            if instance is _MISSING:
                instance = self._construct(cls)
                self._instances[cls] = instance
                logger.debug("Singleton created", type=cls.__qualname__)
            return instance

    def peek(self, cls: type[T]) -> T | None:
        """Return the registered instance without creating one."""
        with self._lock:
            return self._instances.get(cls)

    def reset(self, cls: type | None = None) -> None:
        """Drop the instance of cls, or every instance when cls is None."""
        with self._lock:
            if cls is None:
                self._instances.clear()
            else:
                self._instances.pop(cls, None)

    def __contains__(self, cls: type) -> bool:
        with self._lock:
            return cls in self._instances

    def _rebind(self, cls: type[T], value: T) -> T:
        if not isinstance(value, cls):
            raise RegistryError(
                f"Cannot bind {type(value).__qualname__} as {cls.__qualname__}",
                type=cls.__qualname__,
            )
        with self._lock:
            self._instances[cls] = value
        logger.debug("Singleton rebound", type=cls.__qualname__)
        return value

    @staticmethod
    def _construct(cls: type[T]) -> T:
        if not isinstance(cls, type):
            raise RegistryError(f"Registry keys must be classes, got {cls!r}")
        if inspect.isabstract(cls):
            raise MissingConstructorError(cls, reason="abstract class")

        try:
            signature = inspect.signature(cls)
        except (TypeError, ValueError):
            # Builtins without introspectable signatures; let the call decide
            signature = None

        if signature is not None:
            try:
                signature.bind()
            except TypeError as exc:
                raise MissingConstructorError(cls, reason=str(exc)) from exc

        return cls()


# Process-wide registry
registry = SingletonRegistry()


def get_instance(cls: type[T], value: T = _MISSING) -> T:
    """Shortcut for registry.get(cls[, value])."""
    return registry.get(cls, value)
