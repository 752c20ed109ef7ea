"""
Tests for EntityManager - the generic persistence facade.

Tests cover:
- Field, id and join lookups
- Upsert (insert, update, idempotence, no resurrection)
- Delete by id and cascade-nullify
- Storage failures turned into failed outcomes
- Programmer errors raised
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import DetachedInstanceError

from shared.utils.exceptions import InvalidFieldReferenceError, UnmappedEntityError
from stockroom.core.fields import field
from stockroom.core.outcome import Outcome
from stockroom.models import (
    Category,
    Client,
    Employee,
    Item,
    Nomenclature,
    NomenclatureDetails,
    Supplier,
    Transaction,
    TransactionDetail,
)
from stockroom.services.crud import EntityManager, RowStore


def count_rows(store, entity_type):
    def count(session):
        return session.scalar(select(func.count()).select_from(entity_type))

    return store.execute_write(count)


class FailingStore(RowStore):
    """Store whose every call fails like a dropped connection."""

    def open(self):
        pass

    def execute_query(self, statement):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    def execute_write(self, work):
        raise OperationalError("INSERT", {}, Exception("connection lost"))

    def close(self):
        pass


class TestLookups:

    def test_find_one_by_field(self, entity_manager, seed_item):
        found, item = entity_manager.find_one_by_field(Item, field(Item, "name"), "Tea")
        assert found
        assert item.id == 7

    def test_find_one_by_field_no_match(self, entity_manager, seed_item):
        assert entity_manager.find_one_by_field(Item, field(Item, "name"), "Milk") == Outcome(False, None)

    def test_find_all_by_field_no_match(self, entity_manager, seed_item):
        assert entity_manager.find_all_by_field(Item, field(Item, "name"), "Milk") == Outcome(False, [])

    def test_find_one_by_field_returns_first_inserted(self, entity_manager, persist):
        persist(Item(id=3, name="Tea"), Item(id=9, name="Tea"))
        found, item = entity_manager.find_one_by_field(Item, field(Item, "name"), "Tea")
        assert found
        assert item.id == 3

    def test_find_all_by_field_ordered_by_identity(self, entity_manager, persist):
        persist(Item(id=5, name="Tea"), Item(id=2, name="Tea"), Item(id=4, name="Milk"))
        found, items = entity_manager.find_all_by_field(Item, field(Item, "name"), "Tea")
        assert found
        assert [item.id for item in items] == [2, 5]

    def test_find_by_relationship_value(self, entity_manager, seed_item, seed_category):
        found, items = entity_manager.find_all_by_field(Item, field(Item, "category"), seed_category)
        assert found
        assert [item.id for item in items] == [7]

    def test_find_by_null(self, entity_manager, persist, seed_item):
        persist(Item(id=8, name="Loose"))
        found, items = entity_manager.find_all_by_field(Item, field(Item, "category"), None)
        assert [item.id for item in items] == [8]

    def test_find_by_id(self, entity_manager, seed_item):
        found, item = entity_manager.find_by_id(Item, 7)
        assert found
        assert item.name == "Tea"
        # many-to-one loaded eagerly
        assert item.category.category == "Beverages"

    def test_find_by_id_missing_and_none(self, entity_manager, seed_item):
        assert not entity_manager.find_by_id(Item, 999)
        assert entity_manager.find_by_id(Item, None) == Outcome(False, None)

    def test_find_all(self, entity_manager, persist):
        assert entity_manager.find_all(Category) == Outcome(False, [])
        persist(Category(category="A"), Category(category="B"))
        found, categories = entity_manager.find_all(Category)
        assert found
        assert [c.category for c in categories] == ["A", "B"]

    def test_find_with_joins_resolves_associations(self, entity_manager, persist, seed_item):
        nomenclature = persist(Nomenclature(id=1))
        persist(
            NomenclatureDetails(nomenclature=nomenclature, item=seed_item, item_quantity=4),
            NomenclatureDetails(nomenclature=nomenclature, item=seed_item, item_quantity=6),
        )

        found, details = entity_manager.find_with_joins(
            NomenclatureDetails,
            field(NomenclatureDetails, "nomenclature"),
            nomenclature,
            ["nomenclature", "item"],
        )

        assert found
        assert [d.item_quantity for d in details] == [4, 6]
        # No session is open here; these reads must not need one
        assert all(d.item.name == "Tea" for d in details)
        assert all(d.nomenclature.id == 1 for d in details)

    def test_find_with_joins_loads_collections(self, entity_manager, persist, seed_item):
        nomenclature = persist(Nomenclature(id=1))
        persist(NomenclatureDetails(nomenclature=nomenclature, item=seed_item, item_quantity=4))

        found, nomenclatures = entity_manager.find_with_joins(
            Nomenclature, field(Nomenclature, "id"), 1, ["details"]
        )
        assert found
        assert [d.item_quantity for d in nomenclatures[0].details] == [4]

    def test_collection_not_requested_is_not_loaded(self, entity_manager, persist):
        persist(Nomenclature(id=1))
        found, nomenclature = entity_manager.find_by_id(Nomenclature, 1)
        assert found
        with pytest.raises(DetachedInstanceError):
            nomenclature.details


class TestUpsert:

    def test_insert_assigns_identity(self, entity_manager):
        item = Item(name="Coffee", price=3.0)
        found, stored = entity_manager.upsert(item)
        assert found
        assert stored is item
        assert item.id is not None

        found, loaded = entity_manager.find_by_id(Item, item.id)
        assert found
        assert (loaded.name, loaded.price) == ("Coffee", 3.0)

    def test_insert_parent_with_several_new_children(self, entity_manager, store):
        nomenclature = Nomenclature(
            details=[NomenclatureDetails(item_quantity=1), NomenclatureDetails(item_quantity=2)]
        )

        found, stored = entity_manager.upsert(nomenclature)

        assert found
        assert stored.id is not None
        assert all(detail.id is not None for detail in stored.details)
        assert count_rows(store, NomenclatureDetails) == 2
        _, loaded = entity_manager.find_with_joins(
            Nomenclature, field(Nomenclature, "id"), stored.id, ["details"]
        )
        assert sorted(d.item_quantity for d in loaded[0].details) == [1, 2]

    def test_insert_several_rows_of_one_table_in_one_flush(self, entity_manager, store):
        nomenclature = Nomenclature(
            details=[NomenclatureDetails(item_quantity=n) for n in range(5)]
        )
        assert entity_manager.upsert(nomenclature).found
        assert count_rows(store, NomenclatureDetails) == 5

    def test_update_existing(self, entity_manager, seed_item):
        seed_item.price = 3.75
        assert entity_manager.upsert(seed_item).found
        assert entity_manager.find_by_id(Item, 7).value.price == 3.75

    def test_upsert_twice_leaves_one_row(self, entity_manager, store):
        item = Item(name="Coffee")
        entity_manager.upsert(item)
        entity_manager.upsert(item)
        entity_manager.upsert(item)
        assert count_rows(store, Item) == 1

    def test_update_after_delete_is_not_resurrected(self, entity_manager, store, seed_item):
        assert entity_manager.delete_by_id(Item, 7)
        seed_item.price = 9.0
        assert entity_manager.upsert(seed_item) == Outcome(False, None)
        assert count_rows(store, Item) == 0

    def test_constraint_violation_is_a_failed_outcome(self, entity_manager, seed_category):
        duplicate = Category(category="Beverages")
        assert entity_manager.upsert(duplicate) == Outcome(False, None)
        assert duplicate.id is None

    def test_unmapped_entity_raises(self, entity_manager):
        with pytest.raises(UnmappedEntityError):
            entity_manager.upsert(object())


class TestDelete:

    def test_delete_missing_id_fails(self, entity_manager):
        assert entity_manager.delete_by_id(Item, 404) is False

    def test_delete_with_dependents_is_refused(self, entity_manager, persist, seed_item):
        persist(TransactionDetail(id=1, item=seed_item, quantity=1, price=2.5))
        assert entity_manager.delete_by_id(Item, 7) is False
        assert entity_manager.find_by_id(Item, 7).found

    def test_cascade_disconnect_then_delete(self, entity_manager, persist, seed_item):
        persist(NomenclatureDetails(id=1, item=seed_item, item_quantity=2))

        found, detached = entity_manager.cascade_disconnect(
            seed_item, field(NomenclatureDetails, "item")
        )
        assert found
        assert detached == 1

        found, detail = entity_manager.find_by_id(NomenclatureDetails, 1)
        assert found
        assert detail.item is None
        assert detail.item_id is None

        assert entity_manager.delete_by_id(Item, 7)

    def test_cascade_disconnect_accepts_fk_column(self, entity_manager, persist, seed_item):
        persist(TransactionDetail(id=1, item=seed_item))
        found, detached = entity_manager.cascade_disconnect(
            seed_item, field(TransactionDetail, "item_id")
        )
        assert (found, detached) == (True, 1)

    def test_cascade_disconnect_transient_is_noop(self, entity_manager):
        assert entity_manager.cascade_disconnect(
            Item(name="new"), field(NomenclatureDetails, "item")
        ) == Outcome(True, 0)

    def test_cascade_disconnect_rejects_field_on_same_type(self, entity_manager, seed_item):
        with pytest.raises(InvalidFieldReferenceError):
            entity_manager.cascade_disconnect(seed_item, field(Item, "category"))

    def test_cascade_disconnect_rejects_unrelated_field(self, entity_manager, seed_item):
        with pytest.raises(InvalidFieldReferenceError):
            entity_manager.cascade_disconnect(seed_item, field(Transaction, "client"))
        with pytest.raises(InvalidFieldReferenceError):
            entity_manager.cascade_disconnect(seed_item, field(TransactionDetail, "quantity"))

    def test_delete_with_cascade(self, entity_manager, persist, seed_item):
        persist(
            NomenclatureDetails(id=1, item=seed_item, item_quantity=2),
            TransactionDetail(id=1, item=seed_item, quantity=1),
        )

        assert entity_manager.delete_with_cascade(
            Item, 7, field(NomenclatureDetails, "item"), field(TransactionDetail, "item")
        )

        assert not entity_manager.find_by_id(Item, 7).found
        assert entity_manager.find_by_id(NomenclatureDetails, 1).value.item_id is None
        assert entity_manager.find_by_id(TransactionDetail, 1).value.item_id is None

    def test_delete_with_cascade_is_atomic(self, entity_manager, persist, seed_item):
        # TransactionDetail is not named, so the delete fails and the
        # NomenclatureDetails link must survive the rollback
        persist(
            NomenclatureDetails(id=1, item=seed_item, item_quantity=2),
            TransactionDetail(id=1, item=seed_item, quantity=1),
        )

        assert not entity_manager.delete_with_cascade(Item, 7, field(NomenclatureDetails, "item"))

        assert entity_manager.find_by_id(Item, 7).found
        assert entity_manager.find_by_id(NomenclatureDetails, 1).value.item_id == 7

    def test_delete_with_cascade_missing_id(self, entity_manager):
        assert entity_manager.delete_with_cascade(Supplier, 5, field(Nomenclature, "supplier")) is False


class TestStorageFailures:

    @pytest.fixture
    def failing(self):
        return EntityManager(FailingStore())

    def test_lookups_fail_soft(self, failing):
        assert failing.find_one_by_field(Item, field(Item, "name"), "Tea") == Outcome(False, None)
        assert failing.find_all_by_field(Item, field(Item, "name"), "Tea") == Outcome(False, [])
        assert failing.find_by_id(Item, 1) == Outcome(False, None)
        assert failing.find_all(Client) == Outcome(False, [])

    def test_writes_fail_soft(self, failing):
        item = Item(name="Tea")
        assert failing.upsert(item) == Outcome(False, None)
        assert item.id is None
        assert failing.delete_by_id(Item, 1) is False

        existing = Item(id=7, name="Tea")
        assert failing.cascade_disconnect(existing, field(NomenclatureDetails, "item")) == Outcome(False, 0)
        assert failing.delete_with_cascade(Item, 7, field(NomenclatureDetails, "item")) is False

    def test_programmer_errors_still_raise(self, failing):
        with pytest.raises(InvalidFieldReferenceError):
            failing.find_one_by_field(Employee, field(Item, "name"), "Tea")
