# Overview: Stock adjustment rule; maps a transaction type and quantity to a stock change.

"""
Stock adjustment rule.

| type     | on create                 | on delete (reversal)      |
|----------|---------------------------|---------------------------|
| Sale     | stock - qty (floored at 0)| stock + qty               |
| Purchase | stock + qty               | stock - qty (floored at 0)|
| Return   | stock + qty               | stock - qty (floored at 0)|

Stock never goes below zero. A sale that oversells is clamped, so deleting it
later restores more stock than was actually removed.
"""

from __future__ import annotations

from ..models import TransactionType


def stock_delta(transaction_type: TransactionType | str, quantity: int) -> int:
    """Signed change a transaction of this type applies to stock on creation."""
    if quantity < 0:
        raise ValueError("quantity must be >= 0")
    if TransactionType(transaction_type) is TransactionType.SALE:
        return -quantity
    return quantity


def _clamp(value: int) -> int:
    return max(0, value)


def apply_creation(transaction_type: TransactionType | str, current_stock: int, quantity: int) -> int:
    return _clamp(current_stock + stock_delta(transaction_type, quantity))


def apply_reversal(transaction_type: TransactionType | str, current_stock: int, quantity: int) -> int:
    return _clamp(current_stock - stock_delta(transaction_type, quantity))
