"""
Catalog Models: Category, Supplier, Client, Item.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IdType, TimestampMixin


class Category(Base):
    """Item category shown in the inventory category picker."""

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    category: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class Supplier(Base):
    """Goods supplier; a nomenclature (delivery note) names one."""

    __tablename__ = "supplier"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class Client(Base):
    """Customer attached to sales transactions."""

    __tablename__ = "client"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class Item(TimestampMixin, Base):
    """
    A stock-keeping unit.
    price is the selling price, arrival_price the last purchase price.
    """

    __tablename__ = "item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    category_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("category.id"), nullable=True, index=True
    )
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    arrival_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    category: Mapped[Optional["Category"]] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<Item(id={self.__dict__.get('id')}, name='{self.__dict__.get('name')}')>"
