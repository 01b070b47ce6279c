"""
Tenant context: who is calling, for which organization, with which role.

WHY: Every data-access call takes an explicit TenantContext instead of
reading ambient request state, so services can be exercised without a
request and cross-tenant leakage is visible at the call site.

SECURITY INVARIANTS:
1. A context without org_id never reaches the database with a missing
   tenant filter (reads return nothing, writes fail closed).
2. The org/role pair comes from the active user_role row, never from
   client input.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import g

from ..extensions import db
from ..models import UserRole


class TenantMissingError(Exception):
    """Raised when an operation needs an organization and none is resolved."""

    def __init__(self, message: str = "No organization selected"):
        super().__init__(message)


@dataclass(frozen=True)
class TenantContext:
    org_id: int | None
    role: str | None = None
    user_id: str | None = None

    @property
    def has_org(self) -> bool:
        return self.org_id is not None

    def to_dict(self) -> dict:
        return {"org_id": self.org_id, "role": self.role, "user_id": self.user_id}


def require_org(ctx: TenantContext | None) -> int:
    """Return the context's org_id or fail closed."""
    if ctx is None or ctx.org_id is None:
        raise TenantMissingError()
    return ctx.org_id


def resolve_context(user_id: str) -> TenantContext | None:
    """
    Build the tenant context for an authenticated user.

    Returns None when the user has no active role in any organization.
    """
    row = (
        db.session.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.is_active.is_(True))
        .order_by(UserRole.id.asc())
        .first()
    )
    if row is None:
        return None
    return TenantContext(org_id=row.org_id, role=row.role, user_id=user_id)


def get_current_context() -> TenantContext:
    """
    Context established by @require_context for the current request.

    Routes pass this explicitly into services; services never call it.
    """
    ctx = getattr(g, "tenant", None)
    if ctx is None:
        raise TenantMissingError("Tenant context not established")
    return ctx
