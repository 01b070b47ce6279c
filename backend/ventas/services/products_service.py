# backend/ventas/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: All product operations are tenant-scoped through the
DataGateway bound to the caller's TenantContext.
- codes are unique per organization (backend unique constraint)
- products referenced by sale lines cannot be deleted (foreign key)
"""
from __future__ import annotations

from ..validation import ConflictError
from .data_gateway import (
    FOREIGN_KEY_VIOLATION,
    NOT_FOUND,
    UNIQUE_VIOLATION,
    DataGateway,
    GatewayError,
    translate_gateway_error,
)
from .tenant_service import TenantContext, require_org

DUPLICATE_CODE = "A product with this code already exists"

WRITE_ERRORS = {
    UNIQUE_VIOLATION: DUPLICATE_CODE,
}

DELETE_ERRORS = {
    FOREIGN_KEY_VIOLATION: "Cannot delete the product because it has associated sales",
}


class ProductError(Exception):
    """Unexpected backend failure, already translated for the user."""


def _raise_translated(e: GatewayError, messages: dict[str, str]):
    message = translate_gateway_error(e, messages)
    if e.code in messages:
        raise ConflictError(message)
    raise ProductError(message)


def search_products(products: list[dict], query: str | None) -> list[dict]:
    """Case-insensitive match on code or name."""
    if not query or not query.strip():
        return products
    needle = query.strip().lower()
    return [
        p for p in products
        if needle in p["code"].lower() or needle in p["name"].lower()
    ]


def list_products(ctx: TenantContext, query: str | None = None, gateway: DataGateway | None = None) -> list[dict]:
    """Tenant's products, newest first, optionally filtered by `query`."""
    gateway = gateway or DataGateway(ctx)
    products = gateway.select("products", order_by="-created_at")
    return search_products(products, query)


def create_product(ctx: TenantContext, patch: dict, gateway: DataGateway | None = None) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        TenantMissingError: no organization resolved
        ConflictError: code already used in the organization
    """
    require_org(ctx)
    gateway = gateway or DataGateway(ctx)
    try:
        return gateway.insert("products", patch)
    except GatewayError as e:
        _raise_translated(e, WRITE_ERRORS)


def update_product(ctx: TenantContext, product_id: int, patch: dict, gateway: DataGateway | None = None) -> dict | None:
    """
    Update a product.

    Returns the updated product, or None if it is not in the tenant.
    Historical sale lines keep the unit_price they were sold at.
    """
    require_org(ctx)
    gateway = gateway or DataGateway(ctx)
    try:
        gateway.update("products", product_id, patch)
    except GatewayError as e:
        if e.code == NOT_FOUND:
            return None
        _raise_translated(e, WRITE_ERRORS)

    rows = gateway.select("products", filters={"id": product_id})
    return rows[0] if rows else None


def delete_product(ctx: TenantContext, product_id: int, gateway: DataGateway | None = None) -> bool:
    """Hard-delete a product. Returns False if not found."""
    require_org(ctx)
    gateway = gateway or DataGateway(ctx)
    try:
        gateway.delete("products", product_id)
    except GatewayError as e:
        if e.code == NOT_FOUND:
            return False
        _raise_translated(e, DELETE_ERRORS)
    return True
