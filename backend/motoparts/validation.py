from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import TransactionType, MOTORCYCLE_TYPES


# Largest unit price accepted (Rupiah)
MAX_PRICE = 999_999_999

# Largest quantity on one line item
MAX_QUANTITY = 100_000

# Upper bound of the INTEGER id and stock columns
MAX_INT = 2**31 - 1

MAX_LINE_ITEMS = 500


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate brand name)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - fields: JSON key -> model attribute for everything clients may set
    - required_on_create: JSON keys required for POST
    """
    fields: dict[str, str]
    required_on_create: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(name: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    # Whole-number floats come from some JSON encoders (e.g. 50000.0)
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def _coerce_value(name: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(name, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{name} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (fields)
    - required_on_create (if partial=False)
    Returns a patch dict keyed by model attribute.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Read-only keys that clients commonly echo back are ignored
    ignored = {"id", "createdAt", "updatedAt"}

    patch: dict = {}

    for k, raw in payload.items():
        if k in ignored:
            continue
        if k not in policy.fields:
            raise ValidationError(f"Field not allowed: {k}")

        attr = policy.fields[k]
        col = cols[attr]

        # NULL handling
        if raw is None:
            if not col.nullable and col.default is None:
                raise ValidationError(f"{k} cannot be null")
            patch[attr] = None
            continue

        val = _coerce_value(k, col, raw)

        # Blank strings: rejected for required text, stored as NULL otherwise
        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[attr] = val

    return patch


def _check_price(name: str, value: int | None) -> None:
    if value is None:
        return
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")
    if value > MAX_PRICE:
        raise ValidationError(f"{name} cannot exceed {MAX_PRICE}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_price("buyPrice", patch.get("buy_price"))
    _check_price("sellPrice", patch.get("sell_price"))

    for attr, name in (("current_stock", "currentStock"), ("min_threshold", "minThreshold")):
        value = patch.get(attr)
        if value is not None and value < 0:
            raise ValidationError(f"{name} must be >= 0")
        if value is not None and value > MAX_INT:
            raise ValidationError(f"{name} cannot exceed {MAX_INT}")
    if "current_stock" in patch and patch["current_stock"] is None:
        patch["current_stock"] = 0
    if "min_threshold" in patch and patch["min_threshold"] is None:
        patch["min_threshold"] = 0


def enforce_rules_motorcycle(patch: dict) -> None:
    moto_type = patch.get("type")
    if moto_type is not None and moto_type not in MOTORCYCLE_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(MOTORCYCLE_TYPES)}")


# ---------------------------------------------------------------------------
# Transaction requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LineItemRequest:
    product_id: int
    quantity: int
    price: int

    @property
    def subtotal(self) -> int:
        return self.quantity * self.price


@dataclass(frozen=True)
class TransactionRequest:
    type: TransactionType
    items: tuple[LineItemRequest, ...]
    payment_method: str = "Cash"
    customer_name: str | None = None
    notes: str | None = None

    @property
    def total_amount(self) -> int:
        return sum(item.subtotal for item in self.items)


def _optional_text(payload: dict, key: str, max_length: int) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value


def _parse_line_item(index: int, raw: Any) -> LineItemRequest:
    if not isinstance(raw, dict):
        raise ValidationError(f"items[{index}] must be an object")

    for key in ("productId", "quantity", "price"):
        if raw.get(key) is None:
            raise ValidationError(f"items[{index}].{key} is required")

    product_id = coerce_int(f"items[{index}].productId", raw["productId"])
    quantity = coerce_int(f"items[{index}].quantity", raw["quantity"])
    price = coerce_int(f"items[{index}].price", raw["price"])

    if product_id <= 0:
        raise ValidationError(f"items[{index}].productId must be a positive integer")
    if product_id > MAX_INT:
        raise ValidationError(f"items[{index}].productId cannot exceed {MAX_INT}")
    if quantity <= 0:
        raise ValidationError(f"items[{index}].quantity must be > 0")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"items[{index}].quantity cannot exceed {MAX_QUANTITY}")
    if price < 0:
        raise ValidationError(f"items[{index}].price must be >= 0")
    if price > MAX_PRICE:
        raise ValidationError(f"items[{index}].price cannot exceed {MAX_PRICE}")

    return LineItemRequest(product_id=product_id, quantity=quantity, price=price)


def parse_transaction_request(payload: Any) -> TransactionRequest:
    """
    Validate a POST /transactions body into a TransactionRequest.

    The items list is checked for shape only; an empty list is passed through
    so the workflow can reject it with EmptyItemsError.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    raw_type = payload.get("type")
    if raw_type is None:
        raise ValidationError("type is required")
    try:
        txn_type = TransactionType(raw_type)
    except ValueError:
        allowed = ", ".join(t.value for t in TransactionType)
        raise ValidationError(f"type must be one of: {allowed}")

    raw_items = payload.get("items")
    if raw_items is None:
        raw_items = []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be an array")
    if len(raw_items) > MAX_LINE_ITEMS:
        raise ValidationError(f"items cannot contain more than {MAX_LINE_ITEMS} entries")

    items = tuple(_parse_line_item(i, raw) for i, raw in enumerate(raw_items))

    payment_method = _optional_text(payload, "paymentMethod", 64) or "Cash"

    return TransactionRequest(
        type=txn_type,
        items=items,
        payment_method=payment_method,
        customer_name=_optional_text(payload, "customerName", 255),
        notes=_optional_text(payload, "notes", 255),
    )
