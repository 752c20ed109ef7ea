"""
Generic persistence facade.

EntityManager lets any mapped entity type be queried by field, joined,
upserted and cascade-deleted without per-entity query code.

Usage:
    from stockroom.core.fields import field
    from stockroom.services.crud import EntityManager

    em = EntityManager(store)

    found, employee = em.find_one_by_field(Employee, field(Employee, "email"), "a@x.com")
    details = em.find_with_joins(
        NomenclatureDetails,
        field(NomenclatureDetails, "nomenclature"),
        nomenclature,
        ["nomenclature", "item"],
    )
    em.upsert(item)                                   # insert or update
    em.delete_with_cascade(
        Item, 7,
        field(NomenclatureDetails, "item"),
        field(TransactionDetail, "item"),
    )

Contract:
- Lookups return Outcome; found=False carries None or [].
- Storage failures (SQLAlchemyError) are caught here, logged, and turned
  into the failure shape. Callers never see them.
- Programmer errors (field of another type, unknown association name,
  unmapped class) are raised.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapper, Session, joinedload, selectinload

from shared.config.logging import get_logger
from shared.utils.exceptions import InvalidFieldReferenceError, UnmappedEntityError
from stockroom.core.fields import FieldRef, FieldTable, field_table
from stockroom.core.outcome import Outcome
from stockroom.core.registry import get_instance
from stockroom.services.crud.store import RowStore, SqlAlchemyStore

logger = get_logger(__name__)

T = TypeVar("T")


def _mapper(entity_or_type: Any) -> Mapper:
    entity_type = entity_or_type if isinstance(entity_or_type, type) else type(entity_or_type)
    mapper = inspect(entity_type, raiseerr=False)
    if not isinstance(mapper, Mapper):
        raise UnmappedEntityError(entity_or_type)
    return mapper


def identity_key(entity_type: type) -> str:
    """Attribute name of the (single) primary key of entity_type."""
    mapper = _mapper(entity_type)
    if len(mapper.primary_key) != 1:
        raise UnmappedEntityError(entity_type, reason="composite primary keys are not supported")
    return mapper.get_property_by_column(mapper.primary_key[0]).key


def identity_of(entity: Any) -> Any:
    """The identity of entity, None while it is transient."""
    return entity.__dict__.get(identity_key(type(entity)))


class EntityManager:
    """
    Field-based, id-based and join-enabled lookups plus upsert,
    delete-by-id and cascade-nullify, for any mapped entity type.
    """

    def __init__(self, store: RowStore | None = None, fields: FieldTable | None = None):
        self._store = store if store is not None else get_instance(SqlAlchemyStore)
        self._fields = fields or field_table

    @property
    def store(self) -> RowStore:
        return self._store

    # =========================================================================
    # Lookups
    # =========================================================================

    def find_one_by_field(
        self, entity_type: type[T], field_ref: FieldRef, value: Any
    ) -> Outcome[T | None]:
        """
        First entity (lowest identity) whose field equals value.

        More than one match is logged as a warning and the first by
        insertion order is returned.
        """
        self._check_field(entity_type, field_ref)
        statement = (
            select(entity_type)
            .where(field_ref.predicate(value))
            .order_by(self._identity_column(entity_type))
            .limit(2)
        )

        try:
            rows = self._store.execute_query(statement)
        except SQLAlchemyError:
            logger.error(
                "find_one_by_field failed",
                entity=entity_type.__name__,
                field=field_ref.name,
                exc_info=True,
            )
            return Outcome.none()

        if not rows:
            return Outcome.none()
        if len(rows) > 1:
            logger.warning(
                "find_one_by_field matched several rows; returning the first",
                entity=entity_type.__name__,
                field=field_ref.name,
            )
        return Outcome.hit(rows[0])

    def find_all_by_field(
        self, entity_type: type[T], field_ref: FieldRef, value: Any
    ) -> Outcome[list[T]]:
        """Every entity whose field equals value. found is False iff none match."""
        return self.find_with_joins(entity_type, field_ref, value, ())

    def find_with_joins(
        self,
        entity_type: type[T],
        field_ref: FieldRef,
        value: Any,
        joins: Iterable[str],
    ) -> Outcome[list[T]]:
        """
        Same matching as find_all_by_field, with the named associations
        loaded before returning, so reading them later needs no session.
        """
        self._check_field(entity_type, field_ref)
        options = self._join_options(entity_type, joins)
        statement = (
            select(entity_type)
            .where(field_ref.predicate(value))
            .order_by(self._identity_column(entity_type))
        )
        if options:
            statement = statement.options(*options)

        try:
            rows = self._store.execute_query(statement)
        except SQLAlchemyError:
            logger.error(
                "find_with_joins failed",
                entity=entity_type.__name__,
                field=field_ref.name,
                exc_info=True,
            )
            return Outcome.empty()

        return Outcome.of_list(rows)

    def find_by_id(self, entity_type: type[T], entity_id: Any) -> Outcome[T | None]:
        """Direct primary key lookup."""
        identity_column = self._identity_column(entity_type)
        if entity_id is None:
            return Outcome.none()

        try:
            rows = self._store.execute_query(
                select(entity_type).where(identity_column == entity_id)
            )
        except SQLAlchemyError:
            logger.error(
                "find_by_id failed",
                entity=entity_type.__name__,
                entity_id=entity_id,
                exc_info=True,
            )
            return Outcome.none()

        if not rows:
            return Outcome.none()
        return Outcome.hit(rows[0])

    def find_all(self, entity_type: type[T], joins: Iterable[str] = ()) -> Outcome[list[T]]:
        """Every entity of a type, by insertion order."""
        options = self._join_options(entity_type, joins)
        statement = select(entity_type).order_by(self._identity_column(entity_type))
        if options:
            statement = statement.options(*options)

        try:
            rows = self._store.execute_query(statement)
        except SQLAlchemyError:
            logger.error("find_all failed", entity=entity_type.__name__, exc_info=True)
            return Outcome.empty()

        return Outcome.of_list(rows)

    # =========================================================================
    # Writes
    # =========================================================================

    def upsert(self, entity: T) -> Outcome[T | None]:
        """
        Insert entity when its identity is unset, update it otherwise.

        The caller's instance is returned (with its identity assigned on
        insert). Updating an identity whose row no longer exists fails;
        a deleted row is never re-created.
        """
        entity_type = type(entity)
        key = identity_key(entity_type)
        identity = entity.__dict__.get(key)

        if identity is None:
            return self._insert(entity, key)

        def update(session: Session) -> bool:
            if session.get(entity_type, identity) is None:
                return False
            session.merge(entity)
            return True

        try:
            updated = self._store.execute_write(update)
        except SQLAlchemyError:
            logger.error(
                "upsert (update) failed",
                entity=entity_type.__name__,
                entity_id=identity,
                exc_info=True,
            )
            return Outcome.none()

        if not updated:
            logger.warning(
                "upsert target no longer exists",
                entity=entity_type.__name__,
                entity_id=identity,
            )
            return Outcome.none()

        logger.debug("Entity updated", entity=entity_type.__name__, entity_id=identity)
        return Outcome.hit(entity)

    def _insert(self, entity: T, key: str) -> Outcome[T | None]:
        entity_type = type(entity)

        def insert(session: Session) -> None:
            session.add(entity)
            session.flush()

        try:
            self._store.execute_write(insert)
        except SQLAlchemyError:
            logger.error("upsert (insert) failed", entity=entity_type.__name__, exc_info=True)
            # The rolled-back flush may have set the key; the row does not exist
            setattr(entity, key, None)
            return Outcome.none()

        logger.debug(
            "Entity inserted", entity=entity_type.__name__, entity_id=entity.__dict__.get(key)
        )
        return Outcome.hit(entity)

    def delete_by_id(self, entity_type: type, entity_id: Any) -> bool:
        """
        Delete one row. False when no row has that id or the store refuses
        (for example a foreign key still pointing at it).
        """
        self._identity_column(entity_type)

        def delete(session: Session) -> bool:
            target = session.get(entity_type, entity_id)
            if target is None:
                return False
            session.delete(target)
            session.flush()
            return True

        try:
            deleted = self._store.execute_write(delete)
        except SQLAlchemyError:
            logger.error(
                "delete_by_id failed",
                entity=entity_type.__name__,
                entity_id=entity_id,
                exc_info=True,
            )
            return False

        if not deleted:
            logger.info("delete_by_id found no row", entity=entity_type.__name__, entity_id=entity_id)
        else:
            logger.info("Entity deleted", entity=entity_type.__name__, entity_id=entity_id)
        return deleted

    def cascade_disconnect(self, entity: Any, *dependent_fields: FieldRef) -> Outcome[int]:
        """
        Clear every dependent reference to entity, in one transaction.

        Each dependent field must live on another type and point at
        type(entity). The dependent rows stay; only the link is nulled.

        Returns:
            Outcome with the number of rows detached (0 on failure).
        """
        target_type = type(entity)
        self._check_dependents(target_type, dependent_fields)
        identity = identity_of(entity)
        if identity is None:
            return Outcome.hit(0)

        def disconnect(session: Session) -> int:
            return self._disconnect(session, identity, dependent_fields)

        try:
            detached = self._store.execute_write(disconnect)
        except SQLAlchemyError:
            logger.error(
                "cascade_disconnect failed",
                entity=target_type.__name__,
                entity_id=identity,
                exc_info=True,
            )
            return Outcome.miss(0)

        logger.info(
            "Dependents disconnected",
            entity=target_type.__name__,
            entity_id=identity,
            detached=detached,
        )
        return Outcome.hit(detached)

    def delete_with_cascade(
        self, entity_type: type, entity_id: Any, *dependent_fields: FieldRef
    ) -> bool:
        """
        cascade_disconnect followed by delete_by_id as one atomic unit.
        Either both happen or neither does.
        """
        self._check_dependents(entity_type, dependent_fields)

        def disconnect_and_delete(session: Session) -> bool:
            target = session.get(entity_type, entity_id)
            if target is None:
                return False
            self._disconnect(session, entity_id, dependent_fields)
            session.delete(target)
            session.flush()
            return True

        try:
            deleted = self._store.execute_write(disconnect_and_delete)
        except SQLAlchemyError:
            logger.error(
                "delete_with_cascade failed",
                entity=entity_type.__name__,
                entity_id=entity_id,
                exc_info=True,
            )
            return False

        if deleted:
            logger.info("Entity cascade deleted", entity=entity_type.__name__, entity_id=entity_id)
        else:
            logger.info("delete_with_cascade found no row", entity=entity_type.__name__, entity_id=entity_id)
        return deleted

    # =========================================================================
    # Helpers
    # =========================================================================

    def _disconnect(self, session: Session, identity: Any, dependent_fields: Sequence[FieldRef]) -> int:
        detached = 0
        for ref in dependent_fields:
            if ref.is_relationship:
                match = self._fk_attribute(ref)
            else:
                match = ref.attribute
            rows = session.execute(
                select(ref.entity_type).where(match == identity)
            ).unique().scalars().all()
            for row in rows:
                ref.set(row, None)
            detached += len(rows)
        session.flush()
        return detached

    def _check_field(self, entity_type: type, field_ref: FieldRef) -> None:
        if not isinstance(field_ref, FieldRef):
            raise InvalidFieldReferenceError(
                entity_type.__name__, repr(field_ref), reason="not a FieldRef"
            )
        _mapper(entity_type)
        field_ref.check_type(entity_type)

    def _check_dependents(self, target_type: type, dependent_fields: Sequence[FieldRef]) -> None:
        target_table = _mapper(target_type).local_table
        for ref in dependent_fields:
            if not isinstance(ref, FieldRef):
                raise InvalidFieldReferenceError(
                    target_type.__name__, repr(ref), reason="not a FieldRef"
                )
            if ref.entity_type is target_type:
                raise InvalidFieldReferenceError(
                    ref.entity_type.__name__, ref.name, reason="dependent field must be on another type"
                )
            if ref.is_relationship:
                if ref.uselist or ref.target is not target_type:
                    raise InvalidFieldReferenceError(
                        ref.entity_type.__name__,
                        ref.name,
                        reason=f"not a many-to-one reference to {target_type.__name__}",
                    )
                continue

            column = _mapper(ref.entity_type).columns[ref.name]
            if not any(fk.column.table is target_table for fk in column.foreign_keys):
                raise InvalidFieldReferenceError(
                    ref.entity_type.__name__,
                    ref.name,
                    reason=f"no foreign key to {target_type.__name__}",
                )

    def _fk_attribute(self, ref: FieldRef) -> Any:
        """The local foreign key attribute behind a many-to-one relationship."""
        mapper = _mapper(ref.entity_type)
        relationship = mapper.relationships[ref.name]
        local_columns = list(relationship.local_columns)
        if len(local_columns) != 1:
            raise InvalidFieldReferenceError(
                ref.entity_type.__name__, ref.name, reason="composite foreign keys are not supported"
            )
        return getattr(ref.entity_type, mapper.get_property_by_column(local_columns[0]).key)

    def _join_options(self, entity_type: type, joins: Iterable[str]) -> list[Any]:
        options: list[Any] = []
        seen: set[str] = set()
        for name in joins:
            if name in seen:
                continue
            seen.add(name)
            ref = self._fields.relationship(entity_type, name)
            loader = selectinload if ref.uselist else joinedload
            options.append(loader(ref.attribute))
        return options

    def _identity_column(self, entity_type: type) -> Any:
        return getattr(entity_type, identity_key(entity_type))
