from __future__ import annotations

import enum

from ..extensions import db
from motoparts.time_utils import to_utc_z, utcnow


class TransactionType(str, enum.Enum):
    SALE = "Sale"
    PURCHASE = "Purchase"
    RETURN = "Return"


class Transaction(db.Model):
    """
    Transaction header: one sale, purchase or return at the counter.

    total_amount is written once, at creation, from the line items; it is
    never recomputed. Headers and items are only created and deleted together
    by the transaction workflow.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.CheckConstraint(
            "type IN ('Sale', 'Purchase', 'Return')",
            name="ck_transactions_type",
        ),
        db.Index("ix_transactions_date", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    type = db.Column(db.String(16), nullable=False, default=TransactionType.SALE.value)

    # Whole currency units (Rupiah)
    total_amount = db.Column(db.BigInteger, nullable=False, default=0)

    payment_method = db.Column(db.String(64), nullable=False, default="Cash")
    customer_name = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    items = db.relationship(
        "TransactionItem",
        back_populates="transaction",
        order_by="TransactionItem.id",
        cascade="all, delete-orphan",
        lazy=True,
    )

    @property
    def transaction_type(self) -> TransactionType:
        return TransactionType(self.type)

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} type={self.type!r} total={self.total_amount}>"

    def to_dict(self, *, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "date": to_utc_z(self.date),
            "type": self.type,
            "totalAmount": self.total_amount,
            "paymentMethod": self.payment_method,
            "customerName": self.customer_name,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class TransactionItem(db.Model):
    """Line item: one product, quantity and unit price within a transaction."""
    __tablename__ = "transaction_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_transaction_items_quantity_positive"),
        db.CheckConstraint("unit_price >= 0", name="ck_transaction_items_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.BigInteger, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    transaction = db.relationship("Transaction", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transactionId": self.transaction_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "price": self.unit_price,
            "subtotal": self.subtotal,
            "createdAt": to_utc_z(self.created_at),
            "product": self.product.to_dict() if self.product else None,
        }
