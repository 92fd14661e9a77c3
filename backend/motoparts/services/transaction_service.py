# Overview: Transaction workflow; records sales, purchases and returns and keeps product stock in step.

"""
Transaction workflow.

Creating a transaction writes the header, every line item and every product
stock change in one unit of work. Deleting one reverses the stock changes and
removes the records in one unit of work. Nothing is ever half-applied: a
failure anywhere rolls the whole unit back before the error reaches the caller.

Product rows are read with SELECT ... FOR UPDATE so engines with row locks
serialize concurrent stock changes on the same product. SQLite ignores the
hint and serializes writers at the database level instead.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session, joinedload, selectinload

from ..models import Product, Transaction, TransactionItem
from ..validation import TransactionRequest
from motoparts.time_utils import utcnow
from .stock_rules import apply_creation, apply_reversal
from .unit_of_work import UnitOfWork, lock_for_update


class TransactionError(Exception):
    """Base class for transaction workflow errors."""


class EmptyItemsError(TransactionError):
    """Raised when a transaction is submitted without line items."""

    def __init__(self, message: str = "Transaction must have at least one item"):
        super().__init__(message)


class NotFoundError(TransactionError):
    """Raised when a referenced transaction or product does not exist."""


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: int):
        super().__init__("Transaction not found")
        self.transaction_id = transaction_id


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class TransactionAbortedError(TransactionError):
    """Raised when a write fails mid-sequence; the unit of work was rolled back."""


def _with_associations(query):
    return query.options(
        selectinload(Transaction.items)
        .joinedload(TransactionItem.product)
        .options(
            joinedload(Product.category),
            joinedload(Product.brand),
            joinedload(Product.motorcycle),
        )
    )


class TransactionWorkflow:
    """
    Create, delete and read transactions.

    The session and logger are supplied by the caller; routes pass
    db.session and current_app.logger.
    """

    def __init__(self, session: Session, *, logger: logging.Logger | None = None):
        self.session = session
        self.logger = logger or logging.getLogger(__name__)

    def _load_product(self, product_id: int) -> Product | None:
        query = self.session.query(Product).filter_by(id=product_id)
        return lock_for_update(query).first()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, request: TransactionRequest) -> Transaction:
        """
        Record a transaction and apply its stock changes.

        Raises:
            EmptyItemsError: request has no items (nothing written)
            ProductNotFoundError: an item references a missing product (rolled back)
            TransactionAbortedError: any write failed (rolled back)
        """
        if not request.items:
            raise EmptyItemsError()

        total_amount = request.total_amount
        txn_type = request.type

        try:
            with UnitOfWork(self.session) as uow:
                txn = Transaction(
                    date=utcnow(),
                    type=txn_type.value,
                    total_amount=total_amount,
                    payment_method=request.payment_method,
                    customer_name=request.customer_name,
                    notes=request.notes,
                )
                self.session.add(txn)
                uow.flush()

                for item in request.items:
                    product = self._load_product(item.product_id)
                    if product is None:
                        raise ProductNotFoundError(item.product_id)

                    self.session.add(TransactionItem(
                        transaction_id=txn.id,
                        product_id=product.id,
                        quantity=item.quantity,
                        unit_price=item.price,
                        subtotal=item.subtotal,
                    ))

                    before = product.current_stock
                    product.current_stock = apply_creation(txn_type, before, item.quantity)
                    uow.flush()

                    self.logger.debug(
                        "Stock for product %s: %s -> %s (%s of %s)",
                        product.id, before, product.current_stock, txn_type.value, item.quantity,
                    )

                txn_id = txn.id
        except NotFoundError:
            self.logger.warning("Transaction rolled back: referenced product missing")
            raise
        except Exception as exc:
            self.logger.exception("Transaction rolled back while recording %s", txn_type.value)
            raise TransactionAbortedError("Failed to create transaction") from exc

        self.logger.info(
            "Recorded %s transaction %s: %d item(s), total %d",
            txn_type.value, txn_id, len(request.items), total_amount,
        )
        return self.get(txn_id)

    def delete(self, transaction_id: int) -> None:
        """
        Delete a transaction, reversing its stock changes.

        Raises:
            TransactionNotFoundError: no such transaction (nothing changed)
            TransactionAbortedError: any write failed (rolled back)
        """
        try:
            with UnitOfWork(self.session) as uow:
                txn = lock_for_update(
                    self.session.query(Transaction).filter_by(id=transaction_id)
                ).first()
                if txn is None:
                    raise TransactionNotFoundError(transaction_id)

                txn_type = txn.transaction_type
                items = list(txn.items)

                for item in items:
                    product = self._load_product(item.product_id)
                    if product is None:
                        self.logger.warning(
                            "Transaction %s item %s: product %s no longer exists, stock not reversed",
                            transaction_id, item.id, item.product_id,
                        )
                        continue
                    product.current_stock = apply_reversal(txn_type, product.current_stock, item.quantity)

                uow.flush()

                self.session.query(TransactionItem).filter_by(
                    transaction_id=transaction_id
                ).delete(synchronize_session=False)
                self.session.expire(txn, ["items"])
                self.session.delete(txn)
        except NotFoundError:
            raise
        except Exception as exc:
            self.logger.exception("Rolled back deletion of transaction %s", transaction_id)
            raise TransactionAbortedError("Failed to delete transaction") from exc

        self.logger.info(
            "Deleted %s transaction %s and reversed %d item(s)",
            txn_type.value, transaction_id, len(items),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, transaction_id: int) -> Transaction | None:
        return (
            _with_associations(self.session.query(Transaction))
            .filter(Transaction.id == transaction_id)
            .first()
        )

    def list_all(self) -> list[Transaction]:
        return (
            self.session.query(Transaction)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .all()
        )

    def list_between(self, start: datetime, end: datetime) -> list[Transaction]:
        """Transactions dated within [start, end], newest first."""
        return (
            self.session.query(Transaction)
            .filter(Transaction.date >= start, Transaction.date <= end)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .all()
        )
