from __future__ import annotations

from ..extensions import db
from ventas.time_utils import to_utc_z

ROLES = ("admin", "manager", "cashier")


class Organization(db.Model):
    """
    Multi-tenant root: Every tenant is an Organization.

    All customers, products and sales belong to exactly one organization.
    No data may cross organization boundaries.
    """
    __tablename__ = "org"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column("nombre", db.String(255), nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }


class UserRole(db.Model):
    """
    Binds an authenticated user (identified by the auth service) to an
    organization and a role.

    Only the active row is used to build the tenant context.
    """
    __tablename__ = "user_role"
    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'manager', 'cashier')", name="ck_user_role_role"),
        db.Index("ix_user_role_user_active", "user_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    org_id = db.Column(db.Integer, db.ForeignKey("org.id"), nullable=False, index=True)
    role = db.Column(db.String(16), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("user_roles", lazy=True))

    def __repr__(self) -> str:
        return f"<UserRole user_id={self.user_id!r} org_id={self.org_id} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "org_id": self.org_id,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
