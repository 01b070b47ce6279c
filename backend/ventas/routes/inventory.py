# backend/ventas/routes/inventory.py
"""
Inventory routes.

Stock is derived from sale history on every request; nothing is cached.

SECURITY: VIEW_INVENTORY (admin, manager, cashier).
"""
from flask import Blueprint, request

from ..decorators import require_context, require_permission
from ..services.inventory_service import load_inventory, validate_stock
from ..services.tenant_service import get_current_context
from ..validation import is_valid_sale_quantity

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_context
@require_permission("VIEW_INVENTORY")
def get_inventory():
    """Products with derived stock, availability, value and total value."""
    snapshot = load_inventory(get_current_context())
    if not snapshot.is_ready:
        return {"error": snapshot.error, "status": snapshot.status}, 503
    return snapshot.to_dict()


@inventory_bp.post("/validate")
@require_context
@require_permission("VIEW_INVENTORY")
def validate_stock_route():
    """
    Check a requested quantity against fresh stock.

    Body: {"product_id": int, "quantity": int}
    """
    payload = request.get_json(silent=True) or {}
    product_id = payload.get("product_id")
    quantity = payload.get("quantity")

    if not isinstance(product_id, int) or isinstance(product_id, bool):
        return {"error": "product_id must be an integer", "fields": {"product_id": "product_id must be an integer"}}, 400
    valid, message = is_valid_sale_quantity(quantity)
    if not valid:
        return {"error": message, "fields": {"quantity": message}}, 400

    result = validate_stock(load_inventory(get_current_context()), product_id, quantity)
    return result.to_dict(), 200
