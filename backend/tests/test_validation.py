"""
Form validation tests: document ids, email, product codes, prices and the
customer/product rule sets used by the API.
"""

from decimal import Decimal

import pytest

from ventas.models import Customer, Product
from ventas.validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_customer,
    enforce_rules_product,
    is_valid_email,
    is_valid_id,
    is_valid_price,
    is_valid_product_code,
    is_valid_sale_quantity,
    validate_payload,
)


class TestDocumentIds:

    @pytest.mark.parametrize("doc_number,doc_type", [
        ("123456", "CC"),
        ("1234567890", "CC"),
        ("1.234.567", "CC"),
        ("12345678", "TI"),
        ("12345678901", "TI"),
        ("123456789", "NIT"),
        ("900123456", "NIT"),
        ("900.123.456-7", "NIT"),
        ("AB1234", "PP"),
    ])
    def test_accepts_lengths_in_range(self, doc_number, doc_type):
        assert is_valid_id(doc_number, doc_type) == (True, None)

    @pytest.mark.parametrize("doc_number,doc_type", [
        ("12345", "CC"),
        ("12345678901", "CC"),
        ("1234567", "TI"),
        ("12345678", "NIT"),
        ("AB123", "PP"),
    ])
    def test_rejects_lengths_out_of_range(self, doc_number, doc_type):
        valid, message = is_valid_id(doc_number, doc_type)
        assert valid is False
        assert message

    def test_empty_number_is_optional(self):
        assert is_valid_id("   ", "CC") == (True, None)

    def test_unknown_type_uses_generic_range(self):
        assert is_valid_id("ABC123", "XX")[0] is True
        assert is_valid_id("ABC12", "XX")[0] is False


class TestFieldValidators:

    def test_email(self):
        assert is_valid_email("ana@example.com")
        assert is_valid_email("")
        assert not is_valid_email("ana@example")
        assert not is_valid_email("ana example@x.com")

    def test_product_code(self):
        assert is_valid_product_code("CAF-001")
        assert is_valid_product_code("a_b")
        assert not is_valid_product_code("A")
        assert not is_valid_product_code("CAF 001")
        assert not is_valid_product_code("CAF#1")

    def test_price(self):
        assert is_valid_price(1)
        assert is_valid_price("0.01")
        assert not is_valid_price(0)
        assert not is_valid_price(-5)
        assert not is_valid_price("abc")
        assert not is_valid_price(None)
        assert not is_valid_price(True)

    def test_sale_quantity(self):
        assert is_valid_sale_quantity(2) == (True, None)
        assert is_valid_sale_quantity(0)[0] is False
        assert is_valid_sale_quantity(1.5)[0] is False
        assert is_valid_sale_quantity(True)[0] is False
        valid, message = is_valid_sale_quantity(4, available_stock=3)
        assert valid is False
        assert "3" in message


class TestCustomerRules:

    def test_normalizes_fields(self):
        patch = {"name": "  Ana   Gomez ", "email": " ANA@Example.COM ", "doc_type": "cc", "doc_number": "1.234.567"}
        enforce_rules_customer(patch)

        assert patch == {"name": "Ana Gomez", "email": "ana@example.com", "doc_type": "CC", "doc_number": "1234567"}

    def test_empty_optionals_become_none(self):
        patch = {"name": "Ana", "email": "", "doc_type": "", "doc_number": ""}
        enforce_rules_customer(patch)

        assert patch["email"] is None
        assert patch["doc_type"] is None
        assert patch["doc_number"] is None

    def test_collects_every_failing_field(self):
        patch = {"name": "A", "email": "bad", "doc_type": "CC", "doc_number": "123"}
        with pytest.raises(ValidationError) as excinfo:
            enforce_rules_customer(patch)

        assert set(excinfo.value.fields) == {"name", "email", "doc_number"}

    def test_document_fields_travel_together(self):
        with pytest.raises(ValidationError) as excinfo:
            enforce_rules_customer({"name": "Ana", "doc_number": "12345678"})
        assert "doc_type" in excinfo.value.fields

        with pytest.raises(ValidationError) as excinfo:
            enforce_rules_customer({"name": "Ana", "doc_type": "CC"})
        assert "doc_number" in excinfo.value.fields

    def test_unknown_document_type(self):
        with pytest.raises(ValidationError) as excinfo:
            enforce_rules_customer({"name": "Ana", "doc_type": "XX", "doc_number": "123456"})
        assert "doc_type" in excinfo.value.fields


class TestProductRules:

    def test_valid_product(self):
        patch = {"code": " CAF-001 ", "name": " Cafe  molido ", "price": Decimal("12500")}
        enforce_rules_product(patch)
        assert patch["code"] == "CAF-001"
        assert patch["name"] == "Cafe molido"

    def test_invalid_product(self):
        with pytest.raises(ValidationError) as excinfo:
            enforce_rules_product({"code": "C", "name": "Ca", "price": 0})
        assert set(excinfo.value.fields) == {"code", "name", "price"}

    def test_price_ceiling(self):
        with pytest.raises(ValidationError) as excinfo:
            enforce_rules_product({"code": "CAF-001", "name": "Cafe", "price": Decimal("1000000000000")})
        assert "price" in excinfo.value.fields


class TestValidatePayload:
    POLICY = ModelValidationPolicy(writable_fields={"code", "name", "price"}, required_on_create={"code", "name", "price"})

    def test_coerces_price(self):
        patch = validate_payload(model=Product, payload={"code": "A1", "name": "Abc", "price": "10.50"}, policy=self.POLICY)
        assert patch["price"] == Decimal("10.50")

    def test_missing_required(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_payload(model=Product, payload={"code": "A1"}, policy=self.POLICY)
        assert set(excinfo.value.fields) == {"name", "price"}

    def test_rejects_protected_fields(self):
        with pytest.raises(ValidationError):
            validate_payload(
                model=Product,
                payload={"code": "A1", "name": "Abc", "price": 1, "org_id": 2},
                policy=self.POLICY,
            )

    def test_non_numeric_price(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_payload(model=Product, payload={"code": "A1", "name": "Abc", "price": "ten"}, policy=self.POLICY)
        assert "price" in excinfo.value.fields

    def test_empty_optional_string_is_null(self):
        policy = ModelValidationPolicy(writable_fields={"name", "email"}, required_on_create={"name"})
        patch = validate_payload(model=Customer, payload={"name": "Ana", "email": "  "}, policy=policy)
        assert patch["email"] is None

    def test_max_length(self):
        with pytest.raises(ValidationError):
            validate_payload(model=Product, payload={"code": "A" * 65, "name": "Abc", "price": 1}, policy=self.POLICY)
