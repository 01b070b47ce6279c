# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/ventas/routes/sales.py
"""Sales API routes with permission enforcement"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_context, require_permission
from ..services import sales_service
from ..services.data_gateway import FOREIGN_KEY_VIOLATION, UNEXPECTED_ERROR, UNIQUE_VIOLATION
from ..services.sales_service import SaleError
from ..services.tenant_service import get_current_context


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

CONFLICT_CODES = {UNIQUE_VIOLATION, FOREIGN_KEY_VIOLATION}


@sales_bp.post("")
@require_context
@require_permission("CREATE_SALE")
def create_sale_route():
    """
    Create a sale with its line items.

    Body: {"customer_id": int | null,
           "items": [{"product_id": int, "quantity": int, "unit_price"?: number}]}

    Requires: CREATE_SALE permission
    Available to: admin, manager, cashier
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400
    if not isinstance(data.get("items", []), list):
        return jsonify({"error": "items must be a list"}), 400

    try:
        sale = sales_service.create_sale(get_current_context(), data)
        return jsonify({"sale": sale}), 201

    except SaleError as e:
        status = 409 if e.code in CONFLICT_CODES else 400
        return jsonify({"error": str(e), "details": e.details}), status
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": UNEXPECTED_ERROR}), 500


@sales_bp.get("")
@require_context
@require_permission("VIEW_SALES")
def list_sales_route():
    try:
        sales = sales_service.list_sales(get_current_context())
        return jsonify({"items": sales, "count": len(sales)}), 200

    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": UNEXPECTED_ERROR}), 500


@sales_bp.get("/<int:sale_id>")
@require_context
@require_permission("VIEW_SALES")
def get_sale_route(sale_id: int):
    """
    Get sale with items.

    Requires: VIEW_SALES permission
    Available to: admin, manager, cashier
    """
    try:
        sale = sales_service.get_sale(get_current_context(), sale_id)
    except Exception:
        current_app.logger.exception("Failed to get sale")
        return jsonify({"error": UNEXPECTED_ERROR}), 500

    if not sale:
        return jsonify({"error": "Sale not found"}), 404

    return jsonify({"sale": sale}), 200
