"""
Sales Models: Transaction, TransactionDetail.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Float, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IdType, utcnow

if TYPE_CHECKING:
    from .catalog import Client, Item
    from .employee import Employee


class Transaction(Base):
    """A sale rung up by an employee."""

    # "transaction" is a reserved SQL keyword
    __tablename__ = "store_transaction"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    employee_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("employee.id"), nullable=True, index=True
    )
    client_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("client.id"), nullable=True, index=True
    )
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Relationships
    employee: Mapped[Optional["Employee"]] = relationship(lazy="joined")
    client: Mapped[Optional["Client"]] = relationship(lazy="joined")
    details: Mapped[list["TransactionDetail"]] = relationship(
        back_populates="transaction", passive_deletes=True, lazy="select"
    )


class TransactionDetail(Base):
    """One sold line."""

    __tablename__ = "transaction_detail"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    transaction_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("store_transaction.id"), nullable=True, index=True
    )
    item_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("item.id"), nullable=True, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Relationships
    transaction: Mapped[Optional["Transaction"]] = relationship(
        back_populates="details", lazy="joined"
    )
    item: Mapped[Optional["Item"]] = relationship(lazy="joined")
