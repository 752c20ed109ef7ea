"""
Inventory Service.

Item maintenance (search, create, update, delete) and the small lookup
lists that items, deliveries and sales point at: categories, suppliers
and clients.

Deleting anything that other rows reference first detaches those rows
(sets the reference to NULL) and then deletes, in one transaction:

    Item      <- NomenclatureDetails.item, TransactionDetail.item
    Category  <- Item.category
    Supplier  <- Nomenclature.supplier
    Client    <- Transaction.client
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from shared.config.constants import AuditAction, Limits
from shared.config.logging import get_logger
from shared.utils.exceptions import ValidationError
from stockroom.core.fields import FieldRef, field
from stockroom.core.registry import SingletonRegistry, registry as default_registry
from stockroom.models import (
    Category,
    Client,
    Item,
    Nomenclature,
    NomenclatureDetails,
    Supplier,
    Transaction,
    TransactionDetail,
)
from stockroom.services.audit import AuditLogService
from stockroom.services.crud.entity_manager import EntityManager

logger = get_logger(__name__)


class ItemInput(BaseModel):
    """Validated item form."""

    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    price: float = Field(ge=0)
    arrival_price: float = Field(ge=0)
    quantity: int = Field(ge=0)


class LookupKind(str, Enum):
    CATEGORY = "category"
    SUPPLIER = "supplier"
    CLIENT = "client"


@dataclass(frozen=True)
class _Lookup:
    entity_type: type
    value_field: str
    dependents: tuple[tuple[type, str], ...]


_LOOKUPS: dict[LookupKind, _Lookup] = {
    LookupKind.CATEGORY: _Lookup(Category, "category", ((Item, "category"),)),
    LookupKind.SUPPLIER: _Lookup(Supplier, "name", ((Nomenclature, "supplier"),)),
    LookupKind.CLIENT: _Lookup(Client, "name", ((Transaction, "client"),)),
}

_ITEM_DEPENDENTS = ((NomenclatureDetails, "item"), (TransactionDetail, "item"))


def _dependent_fields(dependents: tuple[tuple[type, str], ...]) -> list[FieldRef]:
    return [field(entity_type, name) for entity_type, name in dependents]


def _validate_item(**values: Any) -> ItemInput:
    if isinstance(values.get("name"), str):
        values["name"] = values["name"].strip()
    try:
        return ItemInput(**values)
    except PydanticValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise ValidationError(f"Invalid item: {errors}") from exc


class InventoryService:
    """Inventory screen operations."""

    def __init__(
        self,
        entity_manager: Optional[EntityManager] = None,
        audit_log: Optional[AuditLogService] = None,
        registry: Optional[SingletonRegistry] = None,
    ):
        registry = registry or default_registry
        self._em = entity_manager or registry.get(EntityManager)
        self._audit = audit_log or registry.get(AuditLogService)

    # =========================================================================
    # Items
    # =========================================================================

    def load_items(self, text: str = "") -> list[Item]:
        """
        Search items.

        Empty text lists every item, digits look an item up by id,
        anything else matches the name exactly.
        """
        text = (text or "").strip()
        try:
            if not text:
                found, items = self._em.find_all(Item)
            elif text.isdigit():
                found, item = self._em.find_by_id(Item, int(text))
                items = [item] if found else []
            else:
                found, items = self._em.find_all_by_field(Item, field(Item, "name"), text)
        except Exception as exc:
            logger.error("Error loading items", search=text, exc_info=True)
            self._audit.record(
                AuditAction.LOAD_ITEMS_ERROR, f"Failed to load items with text: {text} - {exc}"
            )
            return []

        logger.info("Items loaded", search=text, count=len(items))
        return list(items)

    def create_item(
        self,
        name: str,
        price: float,
        arrival_price: float,
        quantity: int,
        category: Optional[Category] = None,
    ) -> Optional[Item]:
        """
        Create an item.

        Raises:
            ValidationError: Blank name, negative price or quantity.

        Returns:
            The stored item, or None if the store rejected it.
        """
        data = _validate_item(name=name, price=price, arrival_price=arrival_price, quantity=quantity)
        item = Item(**data.model_dump(), category=category)

        found, stored = self._em.upsert(item)
        if not found:
            logger.error("Failed to create item", name=data.name)
            self._audit.record(AuditAction.CREATE_ITEM_ERROR, f"Failed to create item: {data.name}")
            return None

        logger.info("Item created", item_id=stored.id, name=stored.name)
        return stored

    def update_item(
        self,
        item: Item,
        name: str,
        price: float,
        arrival_price: float,
        quantity: int,
        category: Optional[Category] = None,
    ) -> bool:
        """
        Overwrite the editable fields of an existing item.

        Raises:
            ValidationError: Blank name, negative price or quantity.
        """
        data = _validate_item(name=name, price=price, arrival_price=arrival_price, quantity=quantity)
        for key, value in data.model_dump().items():
            setattr(item, key, value)
        item.category = category

        if not self._em.upsert(item).found:
            logger.error("Failed to update item", item_id=item.id)
            self._audit.record(AuditAction.UPDATE_ITEM_ERROR, f"Failed to update item: {item.name}")
            return False

        logger.info("Item updated", item_id=item.id)
        return True

    def delete_item(self, item_id: int) -> bool:
        """
        Detach the item from past deliveries and sales, then delete it.
        Both happen or neither does.
        """
        deleted = self._em.delete_with_cascade(
            Item, item_id, *_dependent_fields(_ITEM_DEPENDENTS)
        )
        if not deleted:
            logger.error("Failed to delete item", item_id=item_id)
            self._audit.record(AuditAction.DELETE_ITEM_ERROR, f"Failed to delete item with ID: {item_id}")
            return False

        logger.info("Item deleted", item_id=item_id)
        self._audit.record(AuditAction.ITEM_DELETED, f"Item {item_id} deleted")
        return True

    def load_categories(self) -> list[str]:
        """Category names for the item form picker."""
        return self.list_lookup(LookupKind.CATEGORY)

    def find_category(self, name: str) -> Optional[Category]:
        found, category = self._em.find_one_by_field(Category, field(Category, "category"), name)
        return category if found else None

    # =========================================================================
    # Categories / suppliers / clients
    # =========================================================================

    def list_lookup(self, kind: LookupKind) -> list[str]:
        """Names of every category, supplier or client, oldest first."""
        lookup = _LOOKUPS[LookupKind(kind)]
        found, rows = self._em.find_all(lookup.entity_type)
        return [getattr(row, lookup.value_field) for row in rows] if found else []

    def create_lookup(self, kind: LookupKind, value: str) -> bool:
        """
        Add a category, supplier or client.

        Blank values are ignored. Duplicates are refused by the unique
        constraint and reported as False.
        """
        kind = LookupKind(kind)
        lookup = _LOOKUPS[kind]
        value = (value or "").strip()
        if not value:
            return False

        entity = lookup.entity_type(**{lookup.value_field: value})
        if not self._em.upsert(entity).found:
            logger.error("Failed to create lookup value", kind=lookup.entity_type.__name__, value=value)
            self._audit.record(AuditAction.LOOKUP_ERROR, f"Failed to create {kind.value}: {value}")
            return False

        logger.info("Lookup value created", kind=lookup.entity_type.__name__, value=value)
        return True

    def delete_lookup(self, kind: LookupKind, value: str) -> bool:
        """
        Delete the category, supplier or client named value.

        Rows that point at it are kept with the reference cleared.
        """
        kind = LookupKind(kind)
        lookup = _LOOKUPS[kind]
        found, entity = self._em.find_one_by_field(
            lookup.entity_type, field(lookup.entity_type, lookup.value_field), value
        )
        if not found:
            logger.info("Lookup value not found", kind=lookup.entity_type.__name__, value=value)
            return False

        deleted = self._em.delete_with_cascade(
            lookup.entity_type, entity.id, *_dependent_fields(lookup.dependents)
        )
        if not deleted:
            logger.error("Failed to delete lookup value", kind=lookup.entity_type.__name__, value=value)
            self._audit.record(AuditAction.LOOKUP_ERROR, f"Failed to delete {kind.value}: {value}")
            return False

        logger.info("Lookup value deleted", kind=lookup.entity_type.__name__, value=value)
        return True
