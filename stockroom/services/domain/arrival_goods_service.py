"""
Arrival Goods Service.

Receiving a delivery: pick the nomenclatures (deliveries) of a day,
attach a supplier, enter the delivered lines with their purchase and
selling prices, then price and close the invoice.

Every step logs and audits its own failures and returns a neutral
value, so a storage problem never aborts the screen that called it.

Usage:
    from stockroom.services.domain import ArrivalGoodsService, ArrivalLine

    service = ArrivalGoodsService()
    nomenclatures = service.load_items(date.today())
    items, lines = service.load_items_for_nomenclature(nomenclatures[0])
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from typing import Optional

from pydantic import BaseModel, Field

from shared.config.constants import AuditAction
from shared.config.logging import get_logger
from stockroom.core.fields import field
from stockroom.core.registry import SingletonRegistry, registry as default_registry
from stockroom.models import InvoiceStore, Item, Nomenclature, NomenclatureDetails, Supplier
from stockroom.services.audit import AuditLogService
from stockroom.services.crud.entity_manager import EntityManager

logger = get_logger(__name__)


class ArrivalLine(BaseModel):
    """One row of the arrival grid: delivered quantity and the new prices."""

    quantity: int = Field(default=0, ge=0)
    arrival_price: float = Field(default=0.0, ge=0)
    selling_price: float = Field(default=0.0, ge=0)


class ArrivalGoodsService:
    """Goods arrival flow on top of the persistence facade."""

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
    # Loading
    # =========================================================================

    def load_items(self, date: dt.date) -> list[Nomenclature]:
        """
        Nomenclatures of every invoice dated date.

        Invoices without a nomenclature are skipped.
        """
        try:
            found, invoices = self._em.find_all_by_field(
                InvoiceStore, field(InvoiceStore, "date"), date
            )
            nomenclatures = [
                invoice.nomenclature for invoice in invoices if invoice.nomenclature is not None
            ] if found else []
        except Exception as exc:
            logger.error("Error loading nomenclatures", date=str(date), exc_info=True)
            self._audit.record(AuditAction.LOAD_ITEMS_ERROR, str(exc))
            return []

        logger.info("Loaded nomenclature list", date=str(date), count=len(nomenclatures))
        return nomenclatures

    def load_items_for_nomenclature(
        self, nomenclature: Nomenclature
    ) -> tuple[list[Item], list[ArrivalLine]]:
        """
        Items delivered under nomenclature, with one ArrivalLine each
        (delivered quantity, current purchase and selling prices).

        Details whose item was deleted are skipped.
        """
        items: list[Item] = []
        lines: list[ArrivalLine] = []
        try:
            found, details = self._em.find_with_joins(
                NomenclatureDetails,
                field(NomenclatureDetails, "nomenclature"),
                nomenclature,
                ["nomenclature", "item"],
            )
            for detail in details if found else []:
                item = detail.item
                if item is None:
                    continue
                items.append(item)
                lines.append(
                    ArrivalLine(
                        quantity=detail.item_quantity,
                        arrival_price=item.arrival_price,
                        selling_price=item.price,
                    )
                )
        except Exception as exc:
            logger.error(
                "Error loading items for nomenclature",
                nomenclature_id=getattr(nomenclature, "id", None),
                exc_info=True,
            )
            self._audit.record(AuditAction.LOAD_NOMENCLATURE_ITEMS_ERROR, str(exc))
            return [], []

        logger.info("Loaded items for nomenclature", nomenclature_id=nomenclature.id, count=len(items))
        return items, lines

    # =========================================================================
    # Editing
    # =========================================================================

    def update_current_nomenclature(
        self,
        supplier: Supplier,
        nomenclatures: Sequence[Nomenclature],
        index: int,
        invoice: InvoiceStore,
    ) -> Optional[Nomenclature]:
        """
        Attach supplier to nomenclatures[index], persist it if it is new,
        and link it to invoice.

        Returns:
            The current nomenclature, or None on failure.
        """
        try:
            current = nomenclatures[index]
            current.supplier = supplier
            if current.id is None:
                found, _ = self._em.upsert(current)
                if not found:
                    raise RuntimeError("nomenclature could not be stored")
            invoice.nomenclature = current
        except Exception as exc:
            logger.error("Error updating current nomenclature", index=index, exc_info=True)
            self._audit.record(AuditAction.UPDATE_NOMENCLATURE_ERROR, str(exc))
            return None

        logger.info("Updated current nomenclature", supplier=supplier.name, nomenclature_id=current.id)
        return current

    def save_current_invoice_store(
        self, invoice: InvoiceStore, number: int, date: dt.date
    ) -> bool:
        """
        Store number and date on invoice, persist it, then mark it saved
        (status True) if it was not already.
        """
        try:
            invoice.number = number
            invoice.date = date
            if not self._em.upsert(invoice).found:
                raise RuntimeError(f"invoice {number} could not be stored")

            if not invoice.status:
                invoice.status = True
                if not self._em.upsert(invoice).found:
                    raise RuntimeError(f"invoice {number} could not be marked saved")
        except Exception as exc:
            logger.error("Error saving current invoice store", number=number, exc_info=True)
            self._audit.record(AuditAction.SAVE_INVOICE_ERROR, str(exc))
            return False

        logger.info("Saved current invoice store", number=number, invoice_id=invoice.id)
        return True

    def process_arrival_lines(
        self,
        invoice: InvoiceStore,
        items: Sequence[Item],
        lines: Sequence[ArrivalLine],
    ) -> float:
        """
        Apply each line to the stored item it belongs to and price the invoice.

        items and lines are parallel; items beyond the last line are
        ignored. Items no longer in the store add nothing.

        Returns:
            The final price written to invoice.final_price.
        """
        final_price = 0.0
        try:
            for item, line in zip(items, lines):
                found, db_item = self._em.find_by_id(Item, item.id)
                if not found:
                    logger.warning("Arrival line refers to a missing item", item_id=item.id)
                    continue
                final_price += self.update_item_and_nomenclature_details(
                    db_item, line, invoice.nomenclature
                )
            invoice.final_price = final_price
        except Exception as exc:
            logger.error("Error processing arrival lines", exc_info=True)
            self._audit.record(AuditAction.PROCESS_ARRIVAL_ERROR, str(exc))
            return final_price

        logger.info("Processed arrival lines", final_price=final_price, lines=len(lines))
        return final_price

    def update_item_and_nomenclature_details(
        self,
        db_item: Item,
        line: ArrivalLine,
        nomenclature: Optional[Nomenclature],
    ) -> float:
        """
        Take the new prices, add the delivered quantity to stock and
        record a NomenclatureDetails row for the delivery.

        Returns:
            Purchase value of the line (arrival_price * quantity), 0.0 on failure.
        """
        try:
            if db_item.arrival_price != line.arrival_price or db_item.price != line.selling_price:
                db_item.arrival_price = line.arrival_price
                db_item.price = line.selling_price
            db_item.quantity = (db_item.quantity or 0) + line.quantity
            if not self._em.upsert(db_item).found:
                raise RuntimeError(f"item {db_item.id} could not be updated")

            details = NomenclatureDetails(
                item=db_item,
                item_quantity=line.quantity,
                item_price=line.arrival_price,
                nomenclature=nomenclature,
            )
            if not self._em.upsert(details).found:
                raise RuntimeError(f"delivery line for item {db_item.id} could not be stored")
        except Exception as exc:
            logger.error(
                "Error updating item and nomenclature details",
                item_id=getattr(db_item, "id", None),
                exc_info=True,
            )
            self._audit.record(AuditAction.UPDATE_ITEM_DETAILS_ERROR, str(exc))
            return 0.0

        logger.info("Updated item and nomenclature details", item_id=db_item.id)
        return db_item.arrival_price * details.item_quantity

    def finalize_invoice_store(self, invoice: InvoiceStore) -> bool:
        """Persist the priced invoice."""
        try:
            if not self._em.upsert(invoice).found:
                raise RuntimeError("invoice could not be stored")
        except Exception as exc:
            logger.error("Error finalizing invoice store", invoice_id=invoice.id, exc_info=True)
            self._audit.record(AuditAction.FINALIZE_INVOICE_ERROR, str(exc))
            return False

        logger.info("Finalized invoice store", invoice_id=invoice.id)
        return True

    @staticmethod
    def is_editable(invoice: Optional[InvoiceStore]) -> bool:
        """Lines can be edited until the invoice is saved."""
        return invoice is None or not invoice.status
