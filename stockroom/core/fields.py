"""
Field references and the per-type field table.

A FieldRef names one attribute of one mapped entity type. References are
built once per type from the SQLAlchemy mapper (see FieldTable.register)
and then handed around as plain values, so a query never resolves a
caller-supplied string against an arbitrary class.

Usage:
    from stockroom.core.fields import field

    email = field(Employee, "email")
    entity_manager.find_one_by_field(Employee, email, "a@x.com")
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm import DeclarativeBase, Mapper
from sqlalchemy.sql.elements import ColumnElement

from shared.config.logging import get_logger
from shared.utils.exceptions import InvalidFieldReferenceError, UnmappedEntityError

logger = get_logger(__name__)


@dataclass(frozen=True)
class FieldRef:
    """
    A (type, attribute-name) handle.

    kind is "column" or "relationship". For relationships, target is the
    related class and uselist tells collections from many-to-one links.
    """

    entity_type: type
    name: str
    kind: str
    target: type | None = None
    uselist: bool = False

    @property
    def is_relationship(self) -> bool:
        return self.kind == "relationship"

    @property
    def attribute(self) -> Any:
        """The instrumented class attribute (Item.name, Item.category, ...)."""
        return getattr(self.entity_type, self.name)

    def predicate(self, value: Any) -> ColumnElement[bool]:
        """Equality clause for this field against value."""
        if self.is_relationship and self.uselist:
            return self.attribute.contains(value)
        if value is None:
            if self.is_relationship:
                return self.attribute == None  # noqa: E711
            return self.attribute.is_(None)
        return self.attribute == value

    def get(self, instance: Any) -> Any:
        self.check_instance(instance)
        return getattr(instance, self.name)

    def set(self, instance: Any, value: Any) -> None:
        self.check_instance(instance)
        setattr(instance, self.name, value)

    def belongs_to(self, entity_type: type) -> bool:
        return self.entity_type is entity_type

    def check_type(self, entity_type: type) -> None:
        """Raise unless this reference was declared against entity_type."""
        if not self.belongs_to(entity_type):
            raise InvalidFieldReferenceError(
                entity_type.__name__,
                self.name,
                reason=f"declared on {self.entity_type.__name__}",
            )

    def check_instance(self, instance: Any) -> None:
        self.check_type(type(instance))

    def __str__(self) -> str:
        return f"{self.entity_type.__name__}.{self.name}"


class FieldTable:
    """
    Mapping (entity type, attribute name) -> FieldRef.

    Thread-safe; registration of a type happens once.
    """

    def __init__(self) -> None:
        self._fields: dict[type, dict[str, FieldRef]] = {}
        self._lock = threading.Lock()

    def register(self, entity_type: type) -> dict[str, FieldRef]:
        """Build and store the references of one mapped type."""
        mapper = _mapper_for(entity_type)

        with self._lock:
            existing = self._fields.get(entity_type)
            if existing is not None:
                return existing

            refs: dict[str, FieldRef] = {}
            for prop in mapper.column_attrs:
                refs[prop.key] = FieldRef(entity_type, prop.key, "column")
            for rel in mapper.relationships:
                refs[rel.key] = FieldRef(
                    entity_type,
                    rel.key,
                    "relationship",
                    target=rel.mapper.class_,
                    uselist=bool(rel.uselist),
                )

            self._fields[entity_type] = refs
            logger.debug("Registered entity fields", entity=entity_type.__name__, fields=len(refs))
            return refs

    def register_all(self, base: type[DeclarativeBase]) -> None:
        """Register every class mapped on a declarative base."""
        for mapper in base.registry.mappers:
            self.register(mapper.class_)

    def get(self, entity_type: type, name: str) -> FieldRef:
        refs = self._fields.get(entity_type)
        if refs is None:
            refs = self.register(entity_type)
        try:
            return refs[name]
        except KeyError:
            raise InvalidFieldReferenceError(entity_type.__name__, name, reason="no such attribute") from None

    def fields_of(self, entity_type: type) -> dict[str, FieldRef]:
        refs = self._fields.get(entity_type)
        if refs is None:
            refs = self.register(entity_type)
        return dict(refs)

    def relationship(self, entity_type: type, name: str) -> FieldRef:
        """Like get(), but the attribute must be an association."""
        ref = self.get(entity_type, name)
        if not ref.is_relationship:
            raise InvalidFieldReferenceError(
                entity_type.__name__, name, reason="not an association"
            )
        return ref


def _mapper_for(entity_type: type) -> Mapper:
    mapper = inspect(entity_type, raiseerr=False) if isinstance(entity_type, type) else None
    if not isinstance(mapper, Mapper):
        raise UnmappedEntityError(entity_type)
    return mapper


# Process-wide table
field_table = FieldTable()


def field(entity_type: type, name: str) -> FieldRef:
    """Shortcut for field_table.get(entity_type, name)."""
    return field_table.get(entity_type, name)
