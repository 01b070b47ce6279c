from __future__ import annotations

from ..extensions import db
from ventas.time_utils import to_utc_z


class Product(db.Model):
    """
    Catalog product.

    MULTI-TENANT: Codes are unique within an organization, not globally.
    There is no stored quantity; stock is derived from sale line items.
    """
    __tablename__ = "producto"
    __table_args__ = (
        db.UniqueConstraint("org_id", "codigo", name="uq_producto_org_codigo"),
        db.Index("ix_producto_org_created", "org_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("org.id"), nullable=False, index=True)

    code = db.Column("codigo", db.String(64), nullable=False)
    name = db.Column("nombre", db.String(255), nullable=False)
    price = db.Column("precio", db.Numeric(14, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} org_id={self.org_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "code": self.code,
            "name": self.name,
            "price": float(self.price) if self.price is not None else None,
            "created_at": to_utc_z(self.created_at),
        }
