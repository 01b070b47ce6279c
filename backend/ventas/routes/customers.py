# Overview: Flask API routes for customers; parses input and returns JSON responses.

"""
Customer management routes with multi-tenant support.

MULTI-TENANT: All operations are scoped to the caller's organization via
the TenantContext set by @require_context.

SECURITY:
- list/create: admin, manager, cashier
- edit: admin, manager
- delete: admin
"""
from flask import Blueprint, current_app, request

from ..models import Customer
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_customer,
    ValidationError,
    ConflictError,
)
from ..decorators import require_context, require_permission
from ..services import customers_service
from ..services.customers_service import CustomerError
from ..services.data_gateway import UNEXPECTED_ERROR
from ..services.tenant_service import TenantMissingError, get_current_context

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "doc_type", "doc_number", "email"},
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


def _validated_patch() -> dict:
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY)
    enforce_rules_customer(patch)
    return patch


@customers_bp.get("")
@require_context
@require_permission("VIEW_CUSTOMERS")
def list_customers():
    """
    List the organization's customers, newest first.

    Query params:
    - q: str (optional) - matches name, document number or email
    """
    try:
        items = customers_service.list_customers(get_current_context(), query=request.args.get("q"))
    except Exception:
        current_app.logger.exception("Failed to list customers")
        return {"error": UNEXPECTED_ERROR}, 500

    return {"items": items, "count": len(items)}


@customers_bp.post("")
@require_context
@require_permission("CREATE_CUSTOMER")
def create_customer_route():
    try:
        patch = _validated_patch()
    except ValidationError as e:
        return {"error": str(e), "fields": e.fields}, 400

    try:
        created = customers_service.create_customer(get_current_context(), patch)
    except TenantMissingError as e:
        return {"error": str(e)}, 403
    except CustomerError as e:
        return {"error": str(e)}, 500

    return created, 201


@customers_bp.put("/<int:customer_id>")
@require_context
@require_permission("EDIT_CUSTOMER")
def update_customer_route(customer_id: int):
    try:
        patch = _validated_patch()
    except ValidationError as e:
        return {"error": str(e), "fields": e.fields}, 400

    try:
        updated = customers_service.update_customer(get_current_context(), customer_id, patch)
    except TenantMissingError as e:
        return {"error": str(e)}, 403
    except CustomerError as e:
        return {"error": str(e)}, 500

    if not updated:
        return {"error": "Customer not found"}, 404

    return updated, 200


@customers_bp.delete("/<int:customer_id>")
@require_context
@require_permission("DELETE_CUSTOMER")
def delete_customer_route(customer_id: int):
    try:
        deleted = customers_service.delete_customer(get_current_context(), customer_id)
    except TenantMissingError as e:
        return {"error": str(e)}, 403
    except ConflictError as e:
        return {"error": str(e)}, 409
    except CustomerError as e:
        return {"error": str(e)}, 500

    if not deleted:
        return {"error": "Customer not found"}, 404

    return {"ok": True}, 200
