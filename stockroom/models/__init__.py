"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class, TimestampMixin, IdType
- employee: Employee, EmployeeLog
- catalog: Category, Supplier, Client, Item
- arrival: Nomenclature, NomenclatureDetails, InvoiceStore
- transaction: Transaction, TransactionDetail
"""

# Base classes
from .base import Base, TimestampMixin, IdType

# Employees and the audit trail
from .employee import Employee, EmployeeLog

# Catalog
from .catalog import Category, Supplier, Client, Item

# Goods arrival
from .arrival import Nomenclature, NomenclatureDetails, InvoiceStore

# Sales
from .transaction import Transaction, TransactionDetail

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "IdType",
    # Employees
    "Employee",
    "EmployeeLog",
    # Catalog
    "Category",
    "Supplier",
    "Client",
    "Item",
    # Goods arrival
    "Nomenclature",
    "NomenclatureDetails",
    "InvoiceStore",
    # Sales
    "Transaction",
    "TransactionDetail",
]
