"""
Request validation: transaction bodies and model payloads.
"""

import pytest

from motoparts.models import Product, TransactionType
from motoparts.routes.products import PRODUCT_POLICY
from motoparts.validation import (
    MAX_INT,
    MAX_LINE_ITEMS,
    MAX_PRICE,
    MAX_QUANTITY,
    ValidationError,
    coerce_int,
    enforce_rules_product,
    parse_transaction_request,
    validate_payload,
)


class TestCoerceInt:

    @pytest.mark.parametrize("raw,expected", [(5, 5), ("7", 7), (" 12 ", 12), (50000.0, 50000), ("-3", -3)])
    def test_accepts_integers(self, raw, expected):
        assert coerce_int("n", raw) == expected

    @pytest.mark.parametrize("raw", [True, "1.5", "1e3", "", "abc", 2.5, [1], None])
    def test_rejects_non_integers(self, raw):
        with pytest.raises(ValidationError):
            coerce_int("n", raw)


class TestParseTransactionRequest:

    def test_parses_full_body(self):
        req = parse_transaction_request({
            "type": "Sale",
            "paymentMethod": "Transfer",
            "customerName": "  Budi ",
            "notes": "",
            "items": [
                {"productId": 1, "quantity": 3, "price": 50000},
                {"productId": "2", "quantity": 1, "price": 25000.0},
            ],
        })

        assert req.type is TransactionType.SALE
        assert req.payment_method == "Transfer"
        assert req.customer_name == "Budi"
        assert req.notes is None
        assert [i.product_id for i in req.items] == [1, 2]
        assert req.items[0].subtotal == 150000
        assert req.total_amount == 175000

    def test_payment_method_defaults_to_cash(self):
        req = parse_transaction_request({"type": "Purchase", "items": []})
        assert req.payment_method == "Cash"

    def test_missing_items_becomes_empty(self):
        req = parse_transaction_request({"type": "Return"})
        assert req.items == ()

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            {},
            {"type": "Gift", "items": []},
            {"type": "Sale", "items": {"productId": 1}},
            {"type": "Sale", "items": ["x"]},
            {"type": "Sale", "items": [{"productId": 1, "quantity": 1}]},
            {"type": "Sale", "items": [{"productId": 0, "quantity": 1, "price": 1}]},
            {"type": "Sale", "items": [{"productId": 1, "quantity": 0, "price": 1}]},
            {"type": "Sale", "items": [{"productId": 1, "quantity": 1, "price": -1}]},
            {"type": "Sale", "items": [{"productId": 1, "quantity": 1.5, "price": 1}]},
            {"type": "Sale", "customerName": 42, "items": []},
        ],
    )
    def test_rejects_invalid_bodies(self, payload):
        with pytest.raises(ValidationError):
            parse_transaction_request(payload)

    def test_rejects_too_many_items(self):
        items = [{"productId": 1, "quantity": 1, "price": 1}] * (MAX_LINE_ITEMS + 1)
        with pytest.raises(ValidationError):
            parse_transaction_request({"type": "Sale", "items": items})


class TestProductPayload:

    def test_create_requires_category_and_brand(self):
        with pytest.raises(ValidationError, match="brandId"):
            validate_payload(model=Product, payload={"categoryId": 1}, policy=PRODUCT_POLICY, partial=False)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="Field not allowed"):
            validate_payload(model=Product, payload={"name": "x"}, policy=PRODUCT_POLICY, partial=True)

    def test_read_only_keys_ignored(self):
        patch = validate_payload(
            model=Product,
            payload={"id": 9, "createdAt": "x", "sellPrice": "1000"},
            policy=PRODUCT_POLICY,
            partial=True,
        )
        assert patch == {"sell_price": 1000}

    def test_blank_optional_text_stored_as_null(self):
        patch = validate_payload(model=Product, payload={"size": "  "}, policy=PRODUCT_POLICY, partial=True)
        assert patch == {"size": None}

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            enforce_rules_product({"buy_price": -1})

    def test_null_stock_resets_to_zero(self):
        patch = {"current_stock": None}
        enforce_rules_product(patch)
        assert patch["current_stock"] == 0


class TestLineItemBounds:

    def _item(self, **overrides):
        item = {"productId": 1, "quantity": 1, "price": 1}
        item.update(overrides)
        return {"type": "Purchase", "items": [item]}

    @pytest.mark.parametrize(
        "overrides",
        [
            {"productId": MAX_INT + 1},
            {"productId": 2**64},
            {"quantity": MAX_QUANTITY + 1},
            {"quantity": 10**15},
            {"price": MAX_PRICE + 1},
        ],
    )
    def test_out_of_range_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            parse_transaction_request(self._item(**overrides))

    def test_bounds_are_inclusive(self):
        req = parse_transaction_request(self._item(productId=MAX_INT, quantity=MAX_QUANTITY, price=MAX_PRICE))
        assert req.total_amount == MAX_QUANTITY * MAX_PRICE

    def test_stock_above_integer_range_rejected(self):
        with pytest.raises(ValidationError, match="currentStock"):
            enforce_rules_product({"current_stock": MAX_INT + 1})
