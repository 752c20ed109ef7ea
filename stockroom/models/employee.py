"""
Employee and Employee Log Models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import Roles

from .base import Base, IdType, TimestampMixin, utcnow


class Employee(TimestampMixin, Base):
    """
    A person allowed to log in (cashier, manager, admin).
    The password column only ever holds a bcrypt hash.
    """

    __tablename__ = "employee"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password: Mapped[str] = mapped_column(Text, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(Text)
    last_name: Mapped[Optional[str]] = mapped_column(Text)
    role: Mapped[str] = mapped_column(Text, nullable=False, default=Roles.CASHIER)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def __repr__(self) -> str:
        return f"<Employee(id={self.__dict__.get('id')}, email='{self.__dict__.get('email')}')>"


class EmployeeLog(Base):
    """
    Audit trail entry: what an employee did and when.
    employee is NULL for actions taken before anyone logged in.
    """

    __tablename__ = "employee_log"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    employee_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("employee.id"), nullable=True, index=True
    )
    action: Mapped[str] = mapped_column(Text, nullable=False)
    detail: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_employee_log_employee_created", "employee_id", "created_at"),
    )

    # Relationships
    employee: Mapped[Optional["Employee"]] = relationship(lazy="joined")
