# Overview: Role allow-lists per action.
#
# Roles are not a hierarchy: each action names exactly which roles may do it.

ADMIN = "admin"
MANAGER = "manager"
CASHIER = "cashier"

ALL_ROLES = frozenset({ADMIN, MANAGER, CASHIER})

ACTION_ROLES = {
    # -- CUSTOMERS --
    "VIEW_CUSTOMERS": ALL_ROLES,
    "CREATE_CUSTOMER": ALL_ROLES,
    "EDIT_CUSTOMER": frozenset({ADMIN, MANAGER}),
    "DELETE_CUSTOMER": frozenset({ADMIN}),

    # -- PRODUCTS --
    "VIEW_PRODUCTS": ALL_ROLES,
    "CREATE_PRODUCT": ALL_ROLES,
    "EDIT_PRODUCT": frozenset({ADMIN, MANAGER}),
    "DELETE_PRODUCT": frozenset({ADMIN}),

    # -- INVENTORY / SALES --
    "VIEW_INVENTORY": ALL_ROLES,
    "CREATE_SALE": ALL_ROLES,
    "VIEW_SALES": ALL_ROLES,
}


def has_permission(role: str | None, action: str) -> bool:
    """Unknown actions and missing roles are denied."""
    if role is None:
        return False
    return role in ACTION_ROLES.get(action, frozenset())
