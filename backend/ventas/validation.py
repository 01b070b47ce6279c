from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 999,999,999,999.99 fits Numeric(14, 2)
MAX_PRICE = Decimal("999999999999.99")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PRODUCT_CODE_RE = re.compile(r"^[a-zA-Z0-9_-]{2,}$")

# doc_type -> (min, max, label); lengths count digits only, except passports
DOCUMENT_TYPES = {
    "CC": (6, 10, "The citizenship ID must have between 6 and 10 digits"),
    "TI": (8, 11, "The identity card must have between 8 and 11 digits"),
    "CE": (6, 10, "The foreigner ID must have between 6 and 10 digits"),
    "NIT": (9, 10, "The NIT must have between 9 and 10 digits"),
    "PP": (6, 20, "The passport must have between 6 and 20 characters"),
}
NUMERIC_DOCUMENT_TYPES = {"CC", "TI", "CE", "NIT"}


class ValidationError(ValueError):
    """400-level input problem. fields maps field name -> message."""

    def __init__(self, message: str, fields: dict[str, str] | None = None):
        super().__init__(message)
        self.fields = fields or {}


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product code)."""


# -- Field validators ---------------------------------------------------------

def sanitize_string(value: str) -> str:
    return re.sub(r"\s+", " ", value.strip())


def is_valid_email(email: str) -> bool:
    if not email.strip():
        return True  # optional
    return bool(EMAIL_RE.match(email.strip()))


def is_valid_price(price: Any) -> bool:
    if isinstance(price, bool) or price is None:
        return False
    try:
        value = Decimal(str(price))
    except InvalidOperation:
        return False
    return value.is_finite() and value > 0


def is_valid_product_code(code: str) -> bool:
    if not code.strip():
        return False
    return bool(PRODUCT_CODE_RE.match(code.strip()))


def is_valid_name(name: str, min_length: int = 2) -> bool:
    return len(name.strip()) >= min_length


def is_valid_id(doc_number: str, doc_type: str) -> tuple[bool, str | None]:
    """
    Check a document number against its type's length rule.

    Numeric types count digits only (separators are ignored). Passports and
    unknown types count characters. An empty number is valid (optional).
    """
    if not doc_number.strip():
        return True, None

    if doc_type in NUMERIC_DOCUMENT_TYPES:
        length = len(re.sub(r"\D", "", doc_number))
    else:
        length = len(doc_number.strip())

    low, high, message = DOCUMENT_TYPES.get(
        doc_type, (6, 20, "The document must have between 6 and 20 characters")
    )
    if length < low or length > high:
        return False, message
    return True, None


def is_valid_sale_quantity(quantity: Any, available_stock: int | None = None) -> tuple[bool, str | None]:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        return False, "Quantity must be an integer greater than 0"
    if available_stock is not None and quantity > available_stock:
        return False, f"Not enough stock available. Current stock: {available_stock}"
    return True, None


# -- Payload validation -------------------------------------------------------

@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields that must be present in the payload
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    # Keyed by attribute name; some columns carry a different SQL name.
    return dict(model.__mapper__.columns.items())


def _coerce_value(key: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or not re.fullmatch(r"-?\d+", stripped):
                raise ValidationError(f"{key} must be an integer", {key: f"{key} must be an integer"})
            return int(stripped)
        raise ValidationError(f"{key} must be an integer", {key: f"{key} must be an integer"})

    # Decimals (prices)
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be a number", {key: f"{key} must be a number"})
        if isinstance(value, float) and not math.isfinite(value):
            raise ValidationError(f"{key} must be a finite number", {key: f"{key} must be a finite number"})
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number", {key: f"{key} must be a number"})
        if not number.is_finite():
            raise ValidationError(f"{key} must be a finite number", {key: f"{key} must be a finite number"})
        return number

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create
    Returns a cleaned patch dict with only writable fields.

    Forms are always submitted whole, so create and edit share these rules.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    missing = sorted(f for f in required if f not in payload)
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            {f: f"{f} is required" for f in missing},
        )

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null", {k: f"{k} is required"})
            patch[k] = None
            continue

        val = _coerce_value(k, col, raw)

        # Empty optional strings are stored as NULL
        if isinstance(val, str) and val == "" and col.nullable:
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(
                    f"{k} exceeds max length {col.type.length}",
                    {k: f"{k} exceeds max length {col.type.length}"},
                )

        patch[k] = val

    return patch


def enforce_rules_customer(patch: dict) -> None:
    """
    Customer form rules. Normalizes patch in place and raises with every
    failing field at once.
    """
    errors: dict[str, str] = {}

    name = sanitize_string(patch.get("name") or "")
    patch["name"] = name
    if not name:
        errors["name"] = "Name is required"
    elif not is_valid_name(name, 2):
        errors["name"] = "Name must have at least 2 characters"

    email = (patch.get("email") or "").strip().lower()
    patch["email"] = email or None
    if email and not is_valid_email(email):
        errors["email"] = "Email format is not valid"

    doc_type = (patch.get("doc_type") or "").strip().upper()
    doc_number = (patch.get("doc_number") or "").strip()
    if doc_type in NUMERIC_DOCUMENT_TYPES:
        doc_number = re.sub(r"\D", "", doc_number)
    patch["doc_type"] = doc_type or None
    patch["doc_number"] = doc_number or None

    if doc_type and doc_type not in DOCUMENT_TYPES:
        errors["doc_type"] = f"Unknown document type: {doc_type}"
    elif doc_number and doc_type:
        valid, message = is_valid_id(doc_number, doc_type)
        if not valid:
            errors["doc_number"] = message
    elif doc_number and not doc_type:
        errors["doc_type"] = "Select the document type"
    elif doc_type and not doc_number:
        errors["doc_number"] = "Enter the document number"

    if errors:
        raise ValidationError("Invalid customer data", errors)


def enforce_rules_product(patch: dict) -> None:
    """Product form rules, same contract as enforce_rules_customer."""
    errors: dict[str, str] = {}

    code = (patch.get("code") or "").strip()
    patch["code"] = code
    if not code:
        errors["code"] = "Code is required"
    elif len(code) < 2:
        errors["code"] = "Code must have at least 2 characters"
    elif not is_valid_product_code(code):
        errors["code"] = "Code may only contain letters, digits, '-' and '_'"

    name = sanitize_string(patch.get("name") or "")
    patch["name"] = name
    if not name:
        errors["name"] = "Name is required"
    elif not is_valid_name(name, 3):
        errors["name"] = "Name must have at least 3 characters"

    price = patch.get("price")
    if not is_valid_price(price):
        errors["price"] = "Price must be greater than 0"
    elif Decimal(str(price)) > MAX_PRICE:
        errors["price"] = f"Price cannot exceed {MAX_PRICE:,}"

    if errors:
        raise ValidationError("Invalid product data", errors)
