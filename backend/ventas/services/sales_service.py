"""
Sales Service - sale creation with stock validation and compensation

WHY: A sale is a header row plus its line items, written in two gateway
calls. There is no transaction spanning both, so a failed line-item write
is undone by deleting the header (compensating action).

FLOW (create_sale):
1. Preconditions: organization resolved, at least one item. No backend call.
2. Validation: every line checked against a stock snapshot before any write.
3. Header write.
4. Line-item write (one batch). On failure, delete the header, then raise.
5. Return the created sale.

KNOWN GAPS:
- A failed compensating delete is logged and swallowed; the header stays.
- Validation uses a point-in-time snapshot; concurrent sales are not locked.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..validation import is_valid_price, is_valid_sale_quantity
from .data_gateway import (
    FOREIGN_KEY_VIOLATION,
    INSUFFICIENT_PRIVILEGE,
    DataGateway,
    GatewayError,
    translate_gateway_error,
)
from .document_service import generate_sale_number
from .inventory_service import InventorySnapshot, load_inventory, validate_stock
from .tenant_service import TenantContext

HEADER_ERRORS = {
    FOREIGN_KEY_VIOLATION: "The selected customer does not exist",
    INSUFFICIENT_PRIVILEGE: "The selected customer does not exist",
}

LINE_ITEM_ERRORS = {
    FOREIGN_KEY_VIOLATION: "One of the products in the sale no longer exists",
    INSUFFICIENT_PRIVILEGE: "One of the products in the sale no longer exists",
}


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None, code: str | None = None):
        super().__init__(message)
        self.details = details or {}
        self.code = code


def _sale_total(items: list[dict]) -> float:
    total = sum(
        (Decimal(str(item["unit_price"])) * item["quantity"] for item in items),
        Decimal("0"),
    )
    return float(total)


def _parse_customer_id(value) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise SaleError("customer_id must be an integer")
    return value


def _validate_items(items: list[dict], snapshot: InventorySnapshot) -> list[dict]:
    """
    Check every line and build the rows to insert (without sale_id).

    The first failing line aborts the whole sale.
    """
    rows = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise SaleError("Each item must be an object", details={"line": index})

        product_id = item.get("product_id")
        quantity = item.get("quantity")

        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise SaleError("product_id must be an integer", details={"line": index, "product_id": product_id})

        valid, message = is_valid_sale_quantity(quantity)
        if not valid:
            raise SaleError(message, details={"line": index, "product_id": product_id})

        result = validate_stock(snapshot, product_id, quantity)
        if not result.is_valid:
            raise SaleError(
                result.message,
                details={
                    "line": index,
                    "product_id": product_id,
                    "requested_quantity": quantity,
                    "available_stock": result.available_stock,
                },
            )

        # Price is frozen on the line; later product price edits never touch it.
        unit_price = item.get("unit_price")
        if unit_price is None:
            unit_price = snapshot.find(product_id)["price"]
        if not is_valid_price(unit_price):
            raise SaleError(
                "Unit price must be greater than 0",
                details={"line": index, "product_id": product_id},
            )

        rows.append({
            "product_id": product_id,
            "quantity": quantity,
            "unit_price": Decimal(str(unit_price)),
        })
    return rows


def _compensate(gateway: DataGateway, sale_id: int) -> None:
    """Delete a header whose line items failed to write. Best effort."""
    try:
        gateway.delete("sales", sale_id)
    except GatewayError as e:
        current_app.logger.warning(
            "Compensating delete of sale %s failed (%s); header left orphaned",
            sale_id,
            e.code,
        )


def create_sale(
    ctx: TenantContext,
    data: dict,
    *,
    gateway: DataGateway | None = None,
    snapshot: InventorySnapshot | None = None,
) -> dict:
    """
    Create a sale header and its line items.

    data: {"customer_id": int | None,
           "items": [{"product_id": int, "quantity": int, "unit_price"?: number}]}

    Returns the created sale dict with "items" and "total".
    Raises SaleError on any failure; nothing is written when validation fails.
    """
    if ctx is None or not ctx.has_org:
        raise SaleError("No organization selected")

    items = data.get("items") or []
    if not items:
        raise SaleError("A sale must have at least one item")

    customer_id = _parse_customer_id(data.get("customer_id"))

    gateway = gateway or DataGateway(ctx)
    if snapshot is None:
        snapshot = load_inventory(ctx, gateway)

    rows = _validate_items(items, snapshot)

    try:
        sale = gateway.insert("sales", {
            "customer_id": customer_id,
            "number": generate_sale_number(),
        })
    except GatewayError as e:
        raise SaleError(translate_gateway_error(e, HEADER_ERRORS), details=e.to_dict(), code=e.code)

    for row in rows:
        row["sale_id"] = sale["id"]

    try:
        created_items = gateway.insert("sale_line_items", rows)
    except GatewayError as e:
        _compensate(gateway, sale["id"])
        raise SaleError(translate_gateway_error(e, LINE_ITEM_ERRORS), details=e.to_dict(), code=e.code)

    current_app.logger.info(
        "Created sale %s with %d items for org %s",
        sale["number"],
        len(created_items),
        ctx.org_id,
    )
    return {**sale, "items": created_items, "total": _sale_total(created_items)}


def list_sales(ctx: TenantContext, gateway: DataGateway | None = None) -> list[dict]:
    """Tenant's sales, newest first, each with its items and total."""
    gateway = gateway or DataGateway(ctx)
    sales = gateway.select("sales", order_by="-created_at")
    if not sales:
        return []

    items_by_sale: dict[int, list[dict]] = {}
    for item in gateway.select("sale_line_items", filters={"sale_id": [s["id"] for s in sales]}):
        items_by_sale.setdefault(item["sale_id"], []).append(item)

    return [
        {**sale, "items": items_by_sale.get(sale["id"], []), "total": _sale_total(items_by_sale.get(sale["id"], []))}
        for sale in sales
    ]


def get_sale(ctx: TenantContext, sale_id: int, gateway: DataGateway | None = None) -> dict | None:
    gateway = gateway or DataGateway(ctx)
    found = gateway.select("sales", filters={"id": sale_id})
    if not found:
        return None
    items = gateway.select("sale_line_items", filters={"sale_id": sale_id})
    return {**found[0], "items": items, "total": _sale_total(items)}
