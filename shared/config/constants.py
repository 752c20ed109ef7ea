"""
Centralized constants for the back end.
Avoid magic strings and repeated constants.

Usage:
    from shared.config.constants import Roles, AuditAction

    if employee.role not in Roles.ALL:
        ...
"""

from typing import Final


# =============================================================================
# Employee Roles
# =============================================================================


class Roles:
    """Employee role constants."""

    ADMIN: Final[str] = "ADMIN"
    MANAGER: Final[str] = "MANAGER"
    CASHIER: Final[str] = "CASHIER"

    ALL: Final[list[str]] = [ADMIN, MANAGER, CASHIER]


# =============================================================================
# Audit trail actions
# =============================================================================


class AuditAction:
    """Messages written to the employee log by the business services."""

    LOGIN: Final[str] = "login"
    LOGOUT: Final[str] = "logout"
    LOGIN_FAILED: Final[str] = "Login Failed"

    LOAD_ITEMS_ERROR: Final[str] = "Load Items Error"
    LOAD_NOMENCLATURE_ITEMS_ERROR: Final[str] = "Load Items for Nomenclature Error"
    UPDATE_NOMENCLATURE_ERROR: Final[str] = "Update Current Nomenclature Error"
    SAVE_INVOICE_ERROR: Final[str] = "Save Current Invoice Store Error"
    PROCESS_ARRIVAL_ERROR: Final[str] = "Process Arrival Table Items Error"
    UPDATE_ITEM_DETAILS_ERROR: Final[str] = "Update Item Details Error"
    FINALIZE_INVOICE_ERROR: Final[str] = "Finalize Invoice Store Error"

    CREATE_ITEM_ERROR: Final[str] = "Create Item Error"
    UPDATE_ITEM_ERROR: Final[str] = "Update Item Error"
    DELETE_ITEM_ERROR: Final[str] = "Delete Item Error"
    ITEM_DELETED: Final[str] = "Item Deleted"
    LOOKUP_ERROR: Final[str] = "Lookup Error"


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Input limits."""

    MAX_NAME_LENGTH: Final[int] = 200
    MAX_AUDIT_DETAIL_LENGTH: Final[int] = 2000
