"""
Transaction workflow tests.

Verifies:
- Creating a transaction writes header, items and stock changes together
- A failure at any item leaves nothing behind
- Deleting reverses stock and removes header and items
- Missing transactions are reported the same way every time
"""

import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_product, stock_of
from motoparts.extensions import db
from motoparts.models import Product, Transaction, TransactionItem, TransactionType
from motoparts.services import transaction_service
from motoparts.services.transaction_service import (
    EmptyItemsError,
    ProductNotFoundError,
    TransactionAbortedError,
    TransactionNotFoundError,
    TransactionWorkflow,
)
from motoparts.validation import LineItemRequest, TransactionRequest


def _request(txn_type, *items, **kwargs):
    return TransactionRequest(
        type=txn_type,
        items=tuple(LineItemRequest(product_id=p, quantity=q, price=price) for p, q, price in items),
        **kwargs,
    )


def _counts():
    return (
        db.session.query(Transaction).count(),
        db.session.query(TransactionItem).count(),
    )


@pytest.fixture
def workflow(db_session):
    return TransactionWorkflow(db_session)


# =============================================================================
# CREATE
# =============================================================================


class TestCreate:

    def test_sale_reduces_stock_and_totals_items(self, workflow, product):
        txn = workflow.create(_request(TransactionType.SALE, (product.id, 3, 50000)))

        assert txn.id is not None
        assert txn.type == "Sale"
        assert txn.total_amount == 150000
        assert txn.payment_method == "Cash"
        assert len(txn.items) == 1
        assert txn.items[0].subtotal == 150000
        assert txn.items[0].unit_price == 50000
        assert stock_of(product.id) == 7

    def test_purchase_adds_stock(self, workflow, db_session, category, brand):
        p = make_product(db_session, category, brand, stock=5)

        txn = workflow.create(_request(TransactionType.PURCHASE, (p.id, 20, 10000)))

        assert txn.total_amount == 200000
        assert stock_of(p.id) == 25

    def test_return_adds_stock(self, workflow, product):
        workflow.create(_request(TransactionType.RETURN, (product.id, 2, 50000)))
        assert stock_of(product.id) == 12

    def test_oversell_is_clamped_at_zero(self, workflow, db_session, category, brand):
        p = make_product(db_session, category, brand, stock=2)

        txn = workflow.create(_request(TransactionType.SALE, (p.id, 5, 1000)))

        assert txn.total_amount == 5000
        assert stock_of(p.id) == 0

    def test_total_is_sum_of_line_subtotals(self, workflow, db_session, category, brand, product):
        other = make_product(db_session, category, brand, stock=50, size="90/80-14")

        txn = workflow.create(_request(
            TransactionType.SALE,
            (product.id, 2, 45000),
            (other.id, 4, 12500),
            (product.id, 1, 0),
        ))

        assert txn.total_amount == 2 * 45000 + 4 * 12500
        assert [i.subtotal for i in txn.items] == [90000, 50000, 0]
        assert stock_of(product.id) == 7
        assert stock_of(other.id) == 46

    def test_header_fields_are_stored(self, workflow, product):
        txn = workflow.create(_request(
            TransactionType.SALE,
            (product.id, 1, 50000),
            payment_method="QRIS",
            customer_name="Budi",
            notes="servis rutin",
        ))

        assert txn.payment_method == "QRIS"
        assert txn.customer_name == "Budi"
        assert txn.notes == "servis rutin"

    def test_empty_items_rejected_without_side_effects(self, workflow, product):
        with pytest.raises(EmptyItemsError):
            workflow.create(_request(TransactionType.SALE))

        assert _counts() == (0, 0)
        assert stock_of(product.id) == 10


# =============================================================================
# ATOMICITY
# =============================================================================


class TestAtomicity:

    def test_missing_product_at_second_item_persists_nothing(self, workflow, product):
        with pytest.raises(ProductNotFoundError) as exc_info:
            workflow.create(_request(
                TransactionType.SALE,
                (product.id, 3, 50000),
                (99999, 1, 1000),
            ))

        assert exc_info.value.product_id == 99999
        assert _counts() == (0, 0)
        assert stock_of(product.id) == 10

    def test_database_failure_mid_sequence_rolls_back(self, workflow, db_session, category, brand, product, monkeypatch):
        other = make_product(db_session, category, brand, stock=8)
        real_apply = transaction_service.apply_creation
        calls = []

        def failing_apply(txn_type, current, quantity):
            calls.append(quantity)
            if len(calls) == 2:
                raise OperationalError("UPDATE products", {}, Exception("disk I/O error"))
            return real_apply(txn_type, current, quantity)

        monkeypatch.setattr(transaction_service, "apply_creation", failing_apply)

        with pytest.raises(TransactionAbortedError):
            workflow.create(_request(
                TransactionType.SALE,
                (product.id, 3, 50000),
                (other.id, 2, 20000),
            ))

        assert len(calls) == 2
        assert _counts() == (0, 0)
        assert stock_of(product.id) == 10
        assert stock_of(other.id) == 8

    def test_non_database_failure_is_wrapped_and_rolled_back(self, workflow, product, monkeypatch):
        def overflowing(txn_type, current, quantity):
            raise OverflowError("Python int too large to convert to SQLite INTEGER")

        monkeypatch.setattr(transaction_service, "apply_creation", overflowing)

        with pytest.raises(TransactionAbortedError) as exc_info:
            workflow.create(_request(TransactionType.PURCHASE, (product.id, 3, 50000)))

        assert isinstance(exc_info.value.__cause__, OverflowError)
        assert _counts() == (0, 0)
        assert stock_of(product.id) == 10

    def test_session_is_usable_after_rollback(self, workflow, product):
        with pytest.raises(ProductNotFoundError):
            workflow.create(_request(TransactionType.SALE, (99999, 1, 1000)))

        txn = workflow.create(_request(TransactionType.SALE, (product.id, 1, 50000)))

        assert txn.total_amount == 50000
        assert stock_of(product.id) == 9


# =============================================================================
# DELETE
# =============================================================================


class TestDelete:

    def test_deleting_sale_restores_stock(self, workflow, product):
        txn = workflow.create(_request(TransactionType.SALE, (product.id, 3, 50000)))
        assert stock_of(product.id) == 7

        workflow.delete(txn.id)

        assert stock_of(product.id) == 10
        assert _counts() == (0, 0)
        assert workflow.get(txn.id) is None

    def test_deleting_purchase_removes_stock(self, workflow, product):
        txn = workflow.create(_request(TransactionType.PURCHASE, (product.id, 5, 20000)))
        assert stock_of(product.id) == 15

        workflow.delete(txn.id)

        assert stock_of(product.id) == 10

    def test_purchase_reversal_is_clamped(self, workflow, product):
        purchase = workflow.create(_request(TransactionType.PURCHASE, (product.id, 5, 20000)))
        workflow.create(_request(TransactionType.SALE, (product.id, 14, 50000)))
        assert stock_of(product.id) == 1

        workflow.delete(purchase.id)

        assert stock_of(product.id) == 0

    def test_round_trip_for_every_type(self, workflow, product):
        for txn_type in TransactionType:
            txn = workflow.create(_request(txn_type, (product.id, 4, 1000), (product.id, 2, 1000)))
            workflow.delete(txn.id)
            assert stock_of(product.id) == 10

    def test_delete_only_touches_its_own_transaction(self, workflow, product):
        first = workflow.create(_request(TransactionType.SALE, (product.id, 3, 50000)))
        second = workflow.create(_request(TransactionType.SALE, (product.id, 2, 50000)))
        assert stock_of(product.id) == 5

        workflow.delete(first.id)

        assert stock_of(product.id) == 8
        remaining = workflow.get(second.id)
        assert remaining is not None
        assert len(remaining.items) == 1

    def test_missing_transaction_twice_gives_same_error(self, workflow, product):
        workflow.create(_request(TransactionType.SALE, (product.id, 1, 50000)))
        before = _counts()

        for _ in range(2):
            with pytest.raises(TransactionNotFoundError) as exc_info:
                workflow.delete(99999)
            assert str(exc_info.value) == "Transaction not found"

        assert _counts() == before
        assert stock_of(product.id) == 9

    def test_deleted_product_is_skipped(self, workflow, db_session, product):
        txn = workflow.create(_request(TransactionType.SALE, (product.id, 3, 50000)))
        db_session.query(Product).filter_by(id=product.id).delete(synchronize_session=False)
        db_session.commit()
        db_session.expire_all()

        workflow.delete(txn.id)

        assert _counts() == (0, 0)

    def test_database_failure_during_delete_rolls_back(self, workflow, product, monkeypatch):
        txn = workflow.create(_request(TransactionType.SALE, (product.id, 3, 50000)))

        def failing_reversal(txn_type, current, quantity):
            raise OperationalError("UPDATE products", {}, Exception("disk I/O error"))

        monkeypatch.setattr(transaction_service, "apply_reversal", failing_reversal)

        with pytest.raises(TransactionAbortedError):
            workflow.delete(txn.id)

        assert _counts() == (1, 1)
        assert stock_of(product.id) == 7

    def test_non_database_failure_during_delete_is_wrapped(self, workflow, product, monkeypatch):
        txn = workflow.create(_request(TransactionType.SALE, (product.id, 3, 50000)))

        def overflowing(txn_type, current, quantity):
            raise OverflowError("Python int too large to convert to SQLite INTEGER")

        monkeypatch.setattr(transaction_service, "apply_reversal", overflowing)

        with pytest.raises(TransactionAbortedError):
            workflow.delete(txn.id)

        assert _counts() == (1, 1)
        assert stock_of(product.id) == 7


# =============================================================================
# READS
# =============================================================================


class TestReads:

    def test_list_all_newest_first(self, workflow, product):
        first = workflow.create(_request(TransactionType.SALE, (product.id, 1, 50000)))
        second = workflow.create(_request(TransactionType.PURCHASE, (product.id, 1, 25000)))

        ids = [t.id for t in workflow.list_all()]

        assert ids == [second.id, first.id]

    def test_get_loads_items_with_products(self, workflow, product):
        txn = workflow.create(_request(TransactionType.SALE, (product.id, 2, 50000)))
        db.session.expire_all()

        loaded = workflow.get(txn.id)

        assert loaded.items[0].product.id == product.id
        assert loaded.items[0].product.category.name == "KAMPAS REM"
        assert loaded.items[0].product.brand.name == "FEDERAL"
