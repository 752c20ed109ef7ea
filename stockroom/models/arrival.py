"""
Goods Arrival Models: Nomenclature, NomenclatureDetails, InvoiceStore.

A nomenclature is one delivery from a supplier; its details are the
delivered lines. An invoice store is the priced document that closes
the delivery.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Date, Float, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IdType, TimestampMixin

if TYPE_CHECKING:
    from .catalog import Item, Supplier


class Nomenclature(TimestampMixin, Base):
    """A delivery from one supplier."""

    __tablename__ = "nomenclature"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    supplier_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("supplier.id"), nullable=True, index=True
    )

    # Relationships
    supplier: Mapped[Optional["Supplier"]] = relationship(lazy="joined")
    # Loaded only through a join specification
    details: Mapped[list["NomenclatureDetails"]] = relationship(
        back_populates="nomenclature", passive_deletes=True, lazy="select"
    )


class NomenclatureDetails(Base):
    """One delivered line: item, quantity and purchase price."""

    __tablename__ = "nomenclature_details"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    nomenclature_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("nomenclature.id"), nullable=True, index=True
    )
    # Nullable: deleting an item detaches it from past deliveries
    item_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("item.id"), nullable=True, index=True
    )
    item_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Relationships
    nomenclature: Mapped[Optional["Nomenclature"]] = relationship(
        back_populates="details", lazy="joined"
    )
    item: Mapped[Optional["Item"]] = relationship(lazy="joined")


class InvoiceStore(TimestampMixin, Base):
    """
    Arrival invoice. status becomes True once the invoice is saved,
    after which its lines are read-only.
    """

    __tablename__ = "invoice_store"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True, index=True)
    status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    final_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    nomenclature_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("nomenclature.id"), nullable=True, index=True
    )

    # Relationships
    nomenclature: Mapped[Optional["Nomenclature"]] = relationship(lazy="joined")
