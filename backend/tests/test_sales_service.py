"""
Sale creation tests.

A sale is written in two gateway calls (header, then line items). These
tests pin down the ordering: nothing is written before every line passes,
and a failed line-item write removes the header again.
"""

import re
from decimal import Decimal

import pytest

from ventas.models import Sale, SaleLineItem, Product
from ventas.services.data_gateway import (
    FOREIGN_KEY_VIOLATION,
    UNKNOWN,
    UNEXPECTED_ERROR,
    GatewayError,
)
from ventas.services.document_service import generate_sale_number
from ventas.services.inventory_service import ERROR, READY, InventorySnapshot, derive_stock, load_inventory
from ventas.services.sales_service import SaleError, create_sale, get_sale, list_sales
from ventas.services.tenant_service import TenantContext

CTX = TenantContext(org_id=1, role="cashier", user_id="cashier-1")


class RecordingGateway:
    """Gateway stand-in that records every call and can fail on demand."""

    def __init__(self, fail_insert=None, fail_delete=None):
        self.calls = []
        self.fail_insert = fail_insert or {}
        self.fail_delete = fail_delete

    def select(self, table, filters=None, order_by=None):
        self.calls.append(("select", table))
        return []

    def insert(self, table, rows):
        self.calls.append(("insert", table))
        if table in self.fail_insert:
            raise self.fail_insert[table]
        if isinstance(rows, dict):
            return {"id": 501, **rows, "org_id": CTX.org_id}
        return [
            {"id": i, **row, "unit_price": float(row["unit_price"])}
            for i, row in enumerate(rows, start=1)
        ]

    def delete(self, table, row_id):
        self.calls.append(("delete", table, row_id))
        if self.fail_delete:
            raise self.fail_delete


@pytest.fixture
def snapshot():
    products = [
        {"id": 1, "code": "A1", "name": "Arroz", "price": 2000.0},
        {"id": 2, "code": "B2", "name": "Bocadillo", "price": 500.0},
    ]
    return InventorySnapshot(status=READY, items=derive_stock(products, [
        {"product_id": 1, "quantity": 3},
        {"product_id": 2, "quantity": 1},
    ]))


class TestPreconditions:

    def test_no_organization_makes_no_calls(self, app):
        gateway = RecordingGateway()
        with pytest.raises(SaleError, match="No organization selected"):
            create_sale(TenantContext(org_id=None), {"items": [{"product_id": 1, "quantity": 1}]}, gateway=gateway)
        assert gateway.calls == []

    def test_empty_items_makes_no_calls(self, app):
        gateway = RecordingGateway()
        with pytest.raises(SaleError, match="at least one item"):
            create_sale(CTX, {"items": []}, gateway=gateway)
        assert gateway.calls == []

    def test_bad_customer_id(self, app, snapshot):
        gateway = RecordingGateway()
        with pytest.raises(SaleError):
            create_sale(CTX, {"customer_id": "abc", "items": [{"product_id": 1, "quantity": 1}]},
                        gateway=gateway, snapshot=snapshot)
        assert gateway.calls == []


class TestValidation:

    def test_insufficient_stock_writes_nothing(self, app, snapshot):
        gateway = RecordingGateway()
        with pytest.raises(SaleError) as excinfo:
            create_sale(CTX, {"items": [{"product_id": 1, "quantity": 4}]}, gateway=gateway, snapshot=snapshot)

        assert str(excinfo.value) == "Insufficient stock. Available stock: 3"
        assert excinfo.value.details["available_stock"] == 3
        assert gateway.calls == []

    def test_any_failing_line_aborts_the_sale(self, app, snapshot):
        gateway = RecordingGateway()
        items = [{"product_id": 1, "quantity": 1}, {"product_id": 2, "quantity": 2}]
        with pytest.raises(SaleError) as excinfo:
            create_sale(CTX, {"items": items}, gateway=gateway, snapshot=snapshot)

        assert excinfo.value.details["line"] == 1
        assert gateway.calls == []

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", None])
    def test_invalid_quantity(self, app, snapshot, quantity):
        gateway = RecordingGateway()
        with pytest.raises(SaleError, match="Quantity"):
            create_sale(CTX, {"items": [{"product_id": 1, "quantity": quantity}]}, gateway=gateway, snapshot=snapshot)
        assert gateway.calls == []

    @pytest.mark.parametrize("item", [5, "A1", None, [1, 2]])
    def test_item_must_be_an_object(self, app, snapshot, item):
        gateway = RecordingGateway()
        with pytest.raises(SaleError, match="Each item must be an object") as excinfo:
            create_sale(CTX, {"items": [{"product_id": 1, "quantity": 1}, item]}, gateway=gateway, snapshot=snapshot)
        assert excinfo.value.details == {"line": 1}
        assert gateway.calls == []

    @pytest.mark.parametrize("product_id", [True, "1", 1.0, None])
    def test_product_id_must_be_an_integer(self, app, snapshot, product_id):
        gateway = RecordingGateway()
        with pytest.raises(SaleError, match="product_id must be an integer"):
            create_sale(CTX, {"items": [{"product_id": product_id, "quantity": 1}]}, gateway=gateway, snapshot=snapshot)
        assert gateway.calls == []

    def test_unready_snapshot_refuses(self, app):
        gateway = RecordingGateway()
        with pytest.raises(SaleError, match="Cannot validate stock right now"):
            create_sale(CTX, {"items": [{"product_id": 1, "quantity": 1}]},
                        gateway=gateway, snapshot=InventorySnapshot(status=ERROR))
        assert gateway.calls == []

    def test_invalid_unit_price(self, app, snapshot):
        gateway = RecordingGateway()
        with pytest.raises(SaleError, match="Unit price"):
            create_sale(CTX, {"items": [{"product_id": 1, "quantity": 1, "unit_price": 0}]},
                        gateway=gateway, snapshot=snapshot)
        assert gateway.calls == []


class TestWrites:

    def test_header_then_line_items(self, app, snapshot):
        gateway = RecordingGateway()
        sale = create_sale(CTX, {"items": [{"product_id": 1, "quantity": 2}]}, gateway=gateway, snapshot=snapshot)

        assert gateway.calls == [("insert", "sales"), ("insert", "sale_line_items")]
        assert sale["id"] == 501
        assert sale["customer_id"] is None
        assert re.fullmatch(r"V\d{10}", sale["number"])
        assert sale["items"][0]["sale_id"] == 501
        # Price defaults to the product's current price and is frozen on the line.
        assert sale["items"][0]["unit_price"] == 2000.0
        assert sale["total"] == 4000.0

    def test_explicit_unit_price_wins(self, app, snapshot):
        gateway = RecordingGateway()
        sale = create_sale(CTX, {"items": [{"product_id": 1, "quantity": 1, "unit_price": 1800}]},
                           gateway=gateway, snapshot=snapshot)
        assert sale["total"] == 1800.0

    def test_header_failure_stops_before_line_items(self, app, snapshot):
        gateway = RecordingGateway(fail_insert={"sales": GatewayError(FOREIGN_KEY_VIOLATION, "fk")})
        with pytest.raises(SaleError) as excinfo:
            create_sale(CTX, {"customer_id": 9, "items": [{"product_id": 1, "quantity": 1}]},
                        gateway=gateway, snapshot=snapshot)

        assert str(excinfo.value) == "The selected customer does not exist"
        assert excinfo.value.code == FOREIGN_KEY_VIOLATION
        assert gateway.calls == [("insert", "sales")]

    def test_line_item_failure_deletes_header(self, app, snapshot):
        gateway = RecordingGateway(fail_insert={"sale_line_items": GatewayError(FOREIGN_KEY_VIOLATION, "fk")})
        with pytest.raises(SaleError) as excinfo:
            create_sale(CTX, {"items": [{"product_id": 1, "quantity": 1}]}, gateway=gateway, snapshot=snapshot)

        assert str(excinfo.value) == "One of the products in the sale no longer exists"
        assert gateway.calls == [
            ("insert", "sales"),
            ("insert", "sale_line_items"),
            ("delete", "sales", 501),
        ]

    def test_failed_compensation_still_reports_line_item_error(self, app, snapshot):
        gateway = RecordingGateway(
            fail_insert={"sale_line_items": GatewayError(UNKNOWN, "boom")},
            fail_delete=GatewayError(UNKNOWN, "still down"),
        )
        with pytest.raises(SaleError) as excinfo:
            create_sale(CTX, {"items": [{"product_id": 1, "quantity": 1}]}, gateway=gateway, snapshot=snapshot)

        assert str(excinfo.value) == UNEXPECTED_ERROR
        assert gateway.calls[-1] == ("delete", "sales", 501)


class TestSaleNumber:

    def test_format(self):
        from datetime import datetime
        now = datetime(2024, 3, 7, 10, 30, 0)
        millis = str(int(now.timestamp() * 1000))
        assert generate_sale_number(now) == f"V240307{millis[-4:]}"


class TestWithDatabase:

    def test_persists_sale_and_updates_stock(self, db_session, org_a, ctx_a, product_a, customer_a, sell):
        sell(org_a, product_a, 3)

        sale = create_sale(ctx_a, {"customer_id": customer_a.id, "items": [{"product_id": product_a.id, "quantity": 2}]})

        assert db_session.query(Sale).filter_by(org_id=org_a.id).count() == 2
        assert sale["customer_id"] == customer_a.id
        assert sale["items"][0]["unit_price"] == 12500.0
        assert load_inventory(ctx_a).find(product_a.id)["available"] == 5

        assert get_sale(ctx_a, sale["id"])["total"] == 25000.0
        assert list_sales(ctx_a)[0]["id"] == sale["id"]

    def test_deleted_product_compensates(self, db_session, org_a, ctx_a, product_a, sell):
        sell(org_a, product_a, 3)
        stale = load_inventory(ctx_a)
        product_id = product_a.id

        # Product disappears between the stock check and the write.
        db_session.query(SaleLineItem).delete(synchronize_session=False)
        db_session.query(Sale).delete(synchronize_session=False)
        db_session.query(Product).filter_by(id=product_id).delete(synchronize_session=False)
        db_session.commit()

        with pytest.raises(SaleError, match="no longer exists"):
            create_sale(ctx_a, {"items": [{"product_id": product_id, "quantity": 1}]}, snapshot=stale)

        assert db_session.query(Sale).count() == 0

    def test_foreign_customer_rejected(self, db_session, org_a, ctx_a, product_a, customer_b, sell):
        sell(org_a, product_a, 3)

        with pytest.raises(SaleError, match="customer does not exist"):
            create_sale(ctx_a, {"customer_id": customer_b.id, "items": [{"product_id": product_a.id, "quantity": 1}]})

        assert db_session.query(Sale).filter_by(org_id=org_a.id).count() == 1
