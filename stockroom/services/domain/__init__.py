"""
Business services built on the persistence facade and the registry.

- AuthService: login/logout, employee accounts
- ArrivalGoodsService: receiving deliveries and pricing invoices
- InventoryService: item maintenance and category/supplier/client lists
"""

from .auth_service import AuthService, LoginResult, LoginStatus
from .arrival_goods_service import ArrivalGoodsService, ArrivalLine
from .inventory_service import InventoryService, ItemInput, LookupKind

__all__ = [
    "AuthService",
    "LoginResult",
    "LoginStatus",
    "ArrivalGoodsService",
    "ArrivalLine",
    "InventoryService",
    "ItemInput",
    "LookupKind",
]
