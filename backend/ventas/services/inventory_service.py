# Overview: Service-layer operations for inventory; derives stock from sale history.

"""
Inventory Invariants (authoritative)

Inventory model:
- There is no stored quantity and no receiving: stock is derived from sale
  line items only, recomputed in full on every load.
- stock(product) = -SUM(quantity) over the product's line items.
  A product never sold has stock 0 and is flagged low_stock.
- Displayed / available quantity is abs(stock).
- value = price * available; total_value sums it over the tenant's products.

Validation:
- validate_stock() answers against a point-in-time snapshot. Two sales
  checked against the same snapshot can both pass; there is no locking.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from flask import current_app

from .data_gateway import DataGateway, GatewayError
from .tenant_service import TenantContext

LOADING = "loading"
READY = "ready"
ERROR = "error"


@dataclass(frozen=True)
class StockValidationResult:
    is_valid: bool
    message: str
    available_stock: int

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "message": self.message,
            "available_stock": self.available_stock,
        }


@dataclass
class InventorySnapshot:
    """Products with derived stock, as of one load."""
    status: str = LOADING
    items: list[dict] = field(default_factory=list)
    error: str | None = None

    @property
    def is_ready(self) -> bool:
        return self.status == READY

    def find(self, product_id: int) -> dict | None:
        for item in self.items:
            if item["id"] == product_id:
                return item
        return None

    @property
    def total_value(self) -> float:
        return float(sum((Decimal(str(item["value"])) for item in self.items), Decimal("0")))

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "error": self.error,
            "items": self.items,
            "count": len(self.items),
            "total_value": self.total_value,
        }


def derive_stock(products: list[dict], line_items: list[dict]) -> list[dict]:
    """
    Attach derived stock to each product.

    Pure: groups line items by product_id and sums quantity. Line items
    whose product is not in `products` are ignored.
    """
    sold: dict[int, int] = {}
    for item in line_items:
        sold[item["product_id"]] = sold.get(item["product_id"], 0) + item["quantity"]

    inventory = []
    for product in products:
        stock = -sold.get(product["id"], 0)
        available = abs(stock)
        price = Decimal(str(product.get("price") or 0))
        inventory.append({
            **product,
            "stock": stock,
            "available": available,
            "low_stock": stock == 0,
            "value": float(price * available),
        })
    return inventory


def load_inventory(ctx: TenantContext, gateway: DataGateway | None = None) -> InventorySnapshot:
    """
    Fetch the tenant's products and line items and derive stock.

    Gateway failures produce an ERROR snapshot instead of raising, so a
    caller can still render the page and the validator can refuse safely.
    """
    gateway = gateway or DataGateway(ctx)
    try:
        products = gateway.select("products", order_by="name")
        line_items = gateway.select("sale_line_items")
    except GatewayError as e:
        current_app.logger.warning("Inventory load failed for org %s: %s", ctx.org_id, e.message)
        return InventorySnapshot(status=ERROR, error="Could not load inventory")

    return InventorySnapshot(status=READY, items=derive_stock(products, line_items))


def validate_stock(
    snapshot: InventorySnapshot | None,
    product_id: int,
    requested_quantity: int,
) -> StockValidationResult:
    """Accept or reject a requested quantity against a stock snapshot."""
    if snapshot is None or not snapshot.is_ready:
        return StockValidationResult(False, "Cannot validate stock right now", 0)

    product = None
    if isinstance(product_id, int) and not isinstance(product_id, bool):
        product = snapshot.find(product_id)
    if product is None:
        return StockValidationResult(False, "Product not found in inventory", 0)

    available_stock = abs(product["stock"])

    if requested_quantity > available_stock:
        return StockValidationResult(
            False,
            f"Insufficient stock. Available stock: {available_stock}",
            available_stock,
        )

    return StockValidationResult(True, "Stock available", available_stock)
