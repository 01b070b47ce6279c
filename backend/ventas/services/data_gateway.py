"""
Data Gateway: tenant-scoped reads and writes against the four POS tables.

Every call is its own unit of work (commit on success, rollback on error),
the same shape a remote table API gives us, so multi-step operations
(sale creation) must compensate on their own.

MULTI-TENANT:
- customers, products and sales are filtered and stamped with ctx.org_id
- sale line items carry no org_id; they are scoped through their product
  (reads) and through their parent sale and product (writes)
- without a resolved organization, reads return [] and writes raise
  TenantMissingError; the database is never queried unfiltered

ERRORS: failures surface as GatewayError(code, message). Codes are the
SQLSTATE values PostgreSQL reports, so callers can translate the two that
matter application-wide (unique and foreign-key violations) into domain
messages.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import event, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Customer, Product, Sale, SaleLineItem
from .tenant_service import TenantContext, require_org

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"
INSUFFICIENT_PRIVILEGE = "42501"
UNDEFINED_COLUMN = "42703"
UNDEFINED_TABLE = "42P01"
NOT_FOUND = "PGRST116"
UNKNOWN = "XX000"

TABLES = {
    "customers": Customer,
    "products": Product,
    "sales": Sale,
    "sale_line_items": SaleLineItem,
}

# Columns the gateway owns; callers can neither set nor change them.
PROTECTED_COLUMNS = {"id", "org_id", "created_at"}


class GatewayError(Exception):
    """A failed gateway call, carrying the backend error code."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


def enable_sqlite_foreign_keys(engine) -> None:
    """SQLite ignores foreign keys unless asked per connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def classify_integrity_error(exc: IntegrityError) -> GatewayError:
    """Map a driver integrity error onto a SQLSTATE code."""
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate:
        return GatewayError(sqlstate, str(orig))

    text = str(orig).upper()
    if "UNIQUE CONSTRAINT" in text:
        code = UNIQUE_VIOLATION
    elif "FOREIGN KEY CONSTRAINT" in text:
        code = FOREIGN_KEY_VIOLATION
    elif "NOT NULL CONSTRAINT" in text:
        code = NOT_NULL_VIOLATION
    elif "CHECK CONSTRAINT" in text:
        code = CHECK_VIOLATION
    else:
        code = UNKNOWN
    return GatewayError(code, str(orig))


UNEXPECTED_ERROR = "Unexpected error, please try again"


def translate_gateway_error(exc: GatewayError, messages: dict[str, str]) -> str:
    """
    Domain message for a gateway error.

    Codes missing from `messages` are logged and replaced with a generic
    message so raw backend text never reaches the end user.
    """
    if exc.code in messages:
        return messages[exc.code]
    current_app.logger.error("Unhandled gateway error %s: %s", exc.code, exc.message)
    return UNEXPECTED_ERROR


class DataGateway:
    """Table access bound to one tenant context."""

    def __init__(self, ctx: TenantContext):
        self.ctx = ctx

    # -- helpers --------------------------------------------------------------

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise GatewayError(UNDEFINED_TABLE, f'relation "{table}" does not exist')

    def _column(self, model, key: str):
        columns = dict(model.__mapper__.columns.items())
        if key not in columns:
            raise GatewayError(UNDEFINED_COLUMN, f'column "{key}" does not exist')
        return getattr(model, key)

    def _tenant_filter(self, model, org_id: int):
        if model is SaleLineItem:
            org_products = select(Product.id).where(Product.org_id == org_id)
            return SaleLineItem.product_id.in_(org_products)
        return model.org_id == org_id

    def _check_owned(self, model, row_id, org_id: int, table: str) -> None:
        # Missing rows are left to the foreign key; foreign rows are refused.
        if row_id is None:
            return
        row = db.session.get(model, row_id)
        if row is not None and row.org_id != org_id:
            raise GatewayError(
                INSUFFICIENT_PRIVILEGE,
                f'new row violates row-level security policy for table "{table}"',
            )

    def _clean_row(self, model, data: dict) -> dict:
        clean = {}
        for key, value in data.items():
            if key in PROTECTED_COLUMNS:
                continue
            self._column(model, key)
            clean[key] = value
        return clean

    def _fail(self, exc: Exception, action: str, table: str) -> GatewayError:
        db.session.rollback()
        if isinstance(exc, GatewayError):
            return exc
        if isinstance(exc, IntegrityError):
            return classify_integrity_error(exc)
        current_app.logger.exception("Gateway %s on %s failed", action, table)
        return GatewayError(UNKNOWN, str(exc))

    # -- contract -------------------------------------------------------------

    def select(self, table: str, filters: dict | None = None, order_by: str | None = None) -> list[dict]:
        """
        Rows visible to the tenant, as dicts.

        filters maps column -> value (or a list/tuple/set for IN).
        order_by is a column name, prefixed with '-' for descending.
        """
        model = self._model(table)
        if not self.ctx.has_org:
            return []

        query = db.session.query(model).filter(self._tenant_filter(model, self.ctx.org_id))

        for key, value in (filters or {}).items():
            column = self._column(model, key)
            if isinstance(value, (list, tuple, set)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)

        descending = bool(order_by) and order_by.startswith("-")
        if order_by:
            column = self._column(model, order_by.lstrip("-"))
            query = query.order_by(column.desc() if descending else column.asc())
        query = query.order_by(model.id.desc() if descending else model.id.asc())

        try:
            rows = query.all()
        except SQLAlchemyError as exc:
            raise self._fail(exc, "select", table)
        return [row.to_dict() for row in rows]

    def insert(self, table: str, rows: dict | list[dict]) -> dict | list[dict]:
        """
        Insert one row (dict) or a batch (list) in a single unit of work.

        Returns the created row(s) in the same shape as given.
        """
        model = self._model(table)
        org_id = require_org(self.ctx)

        single = isinstance(rows, dict)
        batch = [rows] if single else list(rows)

        created = []
        try:
            for row in batch:
                data = self._clean_row(model, row)
                if model is SaleLineItem:
                    self._check_owned(Sale, data.get("sale_id"), org_id, "venta_item")
                    self._check_owned(Product, data.get("product_id"), org_id, "venta_item")
                else:
                    if model is Sale:
                        self._check_owned(Customer, data.get("customer_id"), org_id, "venta")
                    data["org_id"] = org_id
                obj = model(**data)
                db.session.add(obj)
                created.append(obj)
            db.session.commit()
        except (SQLAlchemyError, GatewayError) as exc:
            raise self._fail(exc, "insert", table)

        result = [obj.to_dict() for obj in created]
        return result[0] if single else result

    def update(self, table: str, row_id: int, patch: dict) -> None:
        model = self._model(table)
        org_id = require_org(self.ctx)

        try:
            values = {self._column(model, k): v for k, v in self._clean_row(model, patch).items()}
            if model is Sale and Sale.customer_id in values:
                self._check_owned(Customer, values[Sale.customer_id], org_id, "venta")
            if not values:
                return
            count = (
                db.session.query(model)
                .filter(model.id == row_id, self._tenant_filter(model, org_id))
                .update(values, synchronize_session=False)
            )
            if count == 0:
                raise GatewayError(NOT_FOUND, f"No {table} row with id {row_id}")
            db.session.commit()
        except (SQLAlchemyError, GatewayError) as exc:
            raise self._fail(exc, "update", table)

    def delete(self, table: str, row_id: int) -> None:
        model = self._model(table)
        org_id = require_org(self.ctx)

        try:
            count = (
                db.session.query(model)
                .filter(model.id == row_id, self._tenant_filter(model, org_id))
                .delete(synchronize_session=False)
            )
            if count == 0:
                raise GatewayError(NOT_FOUND, f"No {table} row with id {row_id}")
            db.session.commit()
        except (SQLAlchemyError, GatewayError) as exc:
            raise self._fail(exc, "delete", table)
