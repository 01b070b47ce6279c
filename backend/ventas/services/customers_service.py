"""
Customers Service with Multi-Tenant Support

MULTI-TENANT: every operation goes through a DataGateway bound to the
caller's TenantContext; org_id is never taken from the payload.
"""
from __future__ import annotations

from ..validation import ConflictError
from .data_gateway import (
    FOREIGN_KEY_VIOLATION,
    NOT_FOUND,
    DataGateway,
    GatewayError,
    translate_gateway_error,
)
from .tenant_service import TenantContext, require_org

DELETE_ERRORS = {
    FOREIGN_KEY_VIOLATION: "Cannot delete the customer because it has associated sales",
}


class CustomerError(Exception):
    """Unexpected backend failure, already translated for the user."""


def search_customers(customers: list[dict], query: str | None) -> list[dict]:
    """Case-insensitive match on name, document number or email."""
    if not query or not query.strip():
        return customers
    needle = query.strip().lower()
    return [
        c for c in customers
        if needle in c["name"].lower()
        or (c.get("doc_number") and needle in c["doc_number"].lower())
        or (c.get("email") and needle in c["email"].lower())
    ]


def list_customers(ctx: TenantContext, query: str | None = None, gateway: DataGateway | None = None) -> list[dict]:
    """Tenant's customers, newest first, optionally filtered by `query`."""
    gateway = gateway or DataGateway(ctx)
    customers = gateway.select("customers", order_by="-created_at")
    return search_customers(customers, query)


def create_customer(ctx: TenantContext, patch: dict, gateway: DataGateway | None = None) -> dict:
    """Create a customer from a validated patch (see enforce_rules_customer)."""
    require_org(ctx)
    gateway = gateway or DataGateway(ctx)
    try:
        return gateway.insert("customers", patch)
    except GatewayError as e:
        raise CustomerError(translate_gateway_error(e, {}))


def update_customer(ctx: TenantContext, customer_id: int, patch: dict, gateway: DataGateway | None = None) -> dict | None:
    """
    Update a customer.

    Returns the updated customer, or None if it is not in the tenant.
    """
    require_org(ctx)
    gateway = gateway or DataGateway(ctx)
    try:
        gateway.update("customers", customer_id, patch)
    except GatewayError as e:
        if e.code == NOT_FOUND:
            return None
        raise CustomerError(translate_gateway_error(e, {}))

    rows = gateway.select("customers", filters={"id": customer_id})
    return rows[0] if rows else None


def delete_customer(ctx: TenantContext, customer_id: int, gateway: DataGateway | None = None) -> bool:
    """
    Hard-delete a customer.

    Returns False if not found. Raises ConflictError when sales reference it.
    """
    require_org(ctx)
    gateway = gateway or DataGateway(ctx)
    try:
        gateway.delete("customers", customer_id)
    except GatewayError as e:
        if e.code == NOT_FOUND:
            return False
        message = translate_gateway_error(e, DELETE_ERRORS)
        if e.code in DELETE_ERRORS:
            raise ConflictError(message)
        raise CustomerError(message)
    return True
