"""
Tests for SingletonRegistry.

Tests cover:
- Lazy construction and identity of shared instances
- Rebinding and type checks
- Fail-fast on types without a zero-argument constructor
- Concurrent first access
"""

import threading
from abc import ABC, abstractmethod

import pytest

from shared.utils.exceptions import MissingConstructorError, RegistryError
from stockroom.core.context import SessionContext
from stockroom.core.registry import SingletonRegistry


class Counter:
    created = 0

    def __init__(self):
        type(self).created += 1
        self.value = 0


class NeedsArgs:
    def __init__(self, name):
        self.name = name


class Abstract(ABC):
    @abstractmethod
    def run(self): ...


class Exploding:
    def __init__(self):
        raise ValueError("boom")


@pytest.fixture
def fresh():
    return SingletonRegistry()


class TestRegistryGet:

    def test_same_instance_twice(self, fresh):
        assert fresh.get(Counter) is fresh.get(Counter)

    def test_rebind_then_get_returns_bound_value(self, fresh):
        bound = Counter()
        assert fresh.get(Counter, bound) is bound
        assert fresh.get(Counter) is bound

    def test_rebind_replaces_existing_instance(self, fresh):
        first = fresh.get(Counter)
        second = Counter()
        fresh.get(Counter, second)
        assert fresh.get(Counter) is second
        assert fresh.get(Counter) is not first

    def test_rebind_accepts_subclass(self, fresh):
        class SpecialCounter(Counter):
            pass

        special = SpecialCounter()
        assert fresh.get(Counter, special) is special

    def test_rebind_rejects_wrong_type(self, fresh):
        with pytest.raises(RegistryError):
            fresh.get(Counter, "not a counter")

    def test_peek_does_not_construct(self, fresh):
        assert fresh.peek(Counter) is None
        assert Counter not in fresh
        fresh.get(Counter)
        assert Counter in fresh

    def test_reset_one_and_all(self, fresh):
        first = fresh.get(Counter)
        fresh.get(SessionContext)
        fresh.reset(Counter)
        assert Counter not in fresh
        assert SessionContext in fresh
        assert fresh.get(Counter) is not first
        fresh.reset()
        assert SessionContext not in fresh


class TestRegistryConstruction:

    def test_missing_zero_arg_constructor_fails_fast(self, fresh):
        with pytest.raises(MissingConstructorError):
            fresh.get(NeedsArgs)
        assert NeedsArgs not in fresh

    def test_abstract_class_fails_fast(self, fresh):
        with pytest.raises(MissingConstructorError):
            fresh.get(Abstract)

    def test_non_class_key_is_rejected(self, fresh):
        with pytest.raises(RegistryError):
            fresh.get("Counter")

    def test_constructor_errors_propagate_unchanged(self, fresh):
        with pytest.raises(ValueError, match="boom"):
            fresh.get(Exploding)
        assert Exploding not in fresh

    def test_needs_args_can_still_be_bound(self, fresh):
        bound = NeedsArgs("x")
        assert fresh.get(NeedsArgs, bound) is bound
        assert fresh.get(NeedsArgs).name == "x"


class TestRegistryConcurrency:

    def test_concurrent_first_access_creates_one_instance(self, fresh):
        class Slow:
            instances = 0

            def __init__(self):
                type(self).instances += 1

        barrier = threading.Barrier(8)
        seen = []

        def worker():
            barrier.wait()
            seen.append(fresh.get(Slow))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert Slow.instances == 1
        assert all(instance is seen[0] for instance in seen)

    def test_session_rebind_visible_to_readers(self, fresh):
        assert fresh.get(SessionContext).employee_id is None

        class FakeEmployee:
            id = 12
            email = "a@x.com"

        fresh.get(SessionContext, SessionContext(employee=FakeEmployee()))
        assert fresh.get(SessionContext).employee_id == 12
        assert fresh.get(SessionContext).is_authenticated


class TestDefaultRegistryGetters:

    def test_session_getters_share_the_process_registry(self):
        from stockroom.core.dependencies import current_employee_id, get_session_context
        from stockroom.core.registry import registry

        try:
            registry.reset(SessionContext)
            assert get_session_context() is registry.get(SessionContext)
            assert current_employee_id() is None
        finally:
            registry.reset(SessionContext)
