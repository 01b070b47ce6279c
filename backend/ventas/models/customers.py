from __future__ import annotations

from ..extensions import db
from ventas.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data.

    MULTI-TENANT: Customers are scoped to organizations via org_id.
    doc_type and doc_number travel together (both set or both null); the
    pairing is a validation rule, not a schema constraint.
    """
    __tablename__ = "cliente"
    __table_args__ = (
        db.Index("ix_cliente_org_created", "org_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("org.id"), nullable=False, index=True)

    name = db.Column("nombre", db.String(255), nullable=False)
    doc_type = db.Column("tipo_id", db.String(8), nullable=True)
    doc_number = db.Column("idnum", db.String(32), nullable=True)
    email = db.Column("correo", db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    organization = db.relationship("Organization", backref=db.backref("customers", lazy=True))

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r} org_id={self.org_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "doc_type": self.doc_type,
            "doc_number": self.doc_number,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }
