from __future__ import annotations

from ..extensions import db
from ventas.time_utils import to_utc_z


class Sale(db.Model):
    """
    Sale header.

    number is generated by the service from the clock and is not
    guaranteed unique, so there is no unique constraint on it.
    """
    __tablename__ = "venta"
    __table_args__ = (
        db.Index("ix_venta_org_created", "org_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("org.id"), nullable=False, index=True)
    customer_id = db.Column("cliente_id", db.Integer, db.ForeignKey("cliente.id"), nullable=True, index=True)

    number = db.Column("numero", db.String(32), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("sales", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))

    def __repr__(self) -> str:
        return f"<Sale id={self.id} number={self.number!r} org_id={self.org_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "customer_id": self.customer_id,
            "number": self.number,
            "created_at": to_utc_z(self.created_at),
        }


class SaleLineItem(db.Model):
    """
    Individual line items on a sale.

    No org_id column: tenant scoping goes through the product.
    unit_price is captured at sale time and never re-read from the product.
    """
    __tablename__ = "venta_item"
    __table_args__ = (
        db.CheckConstraint("cantidad > 0", name="ck_venta_item_cantidad_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column("venta_id", db.Integer, db.ForeignKey("venta.id"), nullable=False, index=True)
    product_id = db.Column("producto_id", db.Integer, db.ForeignKey("producto.id"), nullable=False, index=True)

    quantity = db.Column("cantidad", db.Integer, nullable=False)
    unit_price = db.Column("precio_unitario", db.Numeric(14, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True))
    product = db.relationship("Product", backref=db.backref("sale_items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price) if self.unit_price is not None else None,
            "created_at": to_utc_z(self.created_at),
        }
