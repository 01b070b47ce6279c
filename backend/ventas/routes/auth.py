# backend/ventas/routes/auth.py
"""
Session context route.

Identity is verified by the hosted auth service; this API only resolves
the caller's organization and role.
"""
from flask import Blueprint, jsonify

from ..extensions import db
from ..models import Organization
from ..decorators import require_context
from ..services.tenant_service import get_current_context

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.get("/me")
@require_context
def me():
    """Current user's organization and role."""
    ctx = get_current_context()
    org = db.session.get(Organization, ctx.org_id)
    return jsonify({
        "user_id": ctx.user_id,
        "role": ctx.role,
        "org": org.to_dict() if org else None,
    }), 200
