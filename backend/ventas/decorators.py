# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request
from jose import JWTError, jwt

from .permissions import has_permission
from .services.tenant_service import resolve_context


def _decode_token(token: str) -> dict | None:
    """Verify an access token issued by the auth service. None if invalid."""
    audience = current_app.config.get("AUTH_JWT_AUDIENCE")
    try:
        return jwt.decode(
            token,
            current_app.config["AUTH_JWT_SECRET"],
            algorithms=[current_app.config.get("AUTH_JWT_ALGORITHM", "HS256")],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except JWTError:
        return None


def require_context(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets g.tenant to the TenantContext(org_id, role, user_id)
    built from the caller's active user_role row. Routes pass g.tenant into
    services explicitly.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid or expired token, or token without a subject
    Returns 403 if the user has no active role in any organization.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        claims = _decode_token(auth_header.split(" ", 1)[1])
        if not claims or not claims.get("sub"):
            return jsonify({"error": "Invalid or expired token"}), 401

        context = resolve_context(str(claims["sub"]))
        if context is None:
            current_app.logger.warning("User %s has no active role", claims["sub"])
            return jsonify({"error": "Your account has no role assigned. Contact the administrator."}), 403

        g.tenant = context
        return f(*args, **kwargs)

    return decorated_function


def require_permission(action: str):
    """
    Require the caller's role to be in the action's allow-list.

    Must be stacked under @require_context.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            ctx = getattr(g, "tenant", None)
            if ctx is None:
                return jsonify({"error": "Authentication required"}), 401

            if not has_permission(ctx.role, action):
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": action,
                    "role": ctx.role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
