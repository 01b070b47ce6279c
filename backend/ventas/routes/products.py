# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to the caller's organization.

SECURITY: All routes require authentication.
- list/create: admin, manager, cashier
- edit: admin, manager
- delete: admin
"""
from flask import Blueprint, current_app, request

from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_context, require_permission
from ..services import products_service
from ..services.products_service import ProductError
from ..services.data_gateway import UNEXPECTED_ERROR
from ..services.tenant_service import TenantMissingError, get_current_context

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "price"},
    required_on_create={"code", "name", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_context
@require_permission("VIEW_PRODUCTS")
def list_products():
    """
    List the organization's products, newest first.

    Query params:
    - q: str (optional) - matches code or name
    """
    try:
        items = products_service.list_products(get_current_context(), query=request.args.get("q"))
    except Exception:
        current_app.logger.exception("Failed to list products")
        return {"error": UNEXPECTED_ERROR}, 500

    return {"items": items, "count": len(items)}


@products_bp.post("")
@require_context
@require_permission("CREATE_PRODUCT")
def create_product_route():
    """
    Create a new product.

    Returns 409 when the code is already used in the organization.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e), "fields": e.fields}, 400

    try:
        created = products_service.create_product(get_current_context(), patch)
    except ConflictError as e:
        return {"error": str(e), "fields": {"code": str(e)}}, 409
    except TenantMissingError as e:
        return {"error": str(e)}, 403
    except ProductError as e:
        return {"error": str(e)}, 500

    return created, 201


@products_bp.put("/<int:product_id>")
@require_context
@require_permission("EDIT_PRODUCT")
def update_product_route(product_id: int):
    """Update a product (whole form)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e), "fields": e.fields}, 400

    try:
        updated = products_service.update_product(get_current_context(), product_id, patch)
    except ConflictError as e:
        return {"error": str(e), "fields": {"code": str(e)}}, 409
    except TenantMissingError as e:
        return {"error": str(e)}, 403
    except ProductError as e:
        return {"error": str(e)}, 500

    if not updated:
        return {"error": "Product not found"}, 404

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_context
@require_permission("DELETE_PRODUCT")
def delete_product_route(product_id: int):
    """Delete a product. 409 when sale lines reference it."""
    try:
        deleted = products_service.delete_product(get_current_context(), product_id)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except TenantMissingError as e:
        return {"error": str(e)}, 403
    except ProductError as e:
        return {"error": str(e)}, 500

    if not deleted:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200
