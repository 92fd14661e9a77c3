from .catalog import Category, Brand, Motorcycle, Product, ProductMotorcycleCompatibility, MOTORCYCLE_TYPES
from .transactions import Transaction, TransactionItem, TransactionType
from .auth import User, SessionToken

__all__ = [
    'Category', 'Brand', 'Motorcycle', 'Product', 'ProductMotorcycleCompatibility', 'MOTORCYCLE_TYPES',
    'Transaction', 'TransactionItem', 'TransactionType',
    'User', 'SessionToken',
]
