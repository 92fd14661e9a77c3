# backend/motoparts/services/products_service.py
"""
Products Service

Products reference a category and a brand (both required) and optionally the
motorcycle they were catalogued under. current_stock may be set here as a
manual correction; day-to-day stock movement goes through the transaction
workflow.
"""
from __future__ import annotations

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Brand, Category, Motorcycle, Product, ProductMotorcycleCompatibility, TransactionItem
from ..validation import ConflictError, ValidationError

PRODUCT_MUTABLE_FIELDS = {
    "category_id",
    "brand_id",
    "motorcycle_id",
    "size",
    "buy_price",
    "sell_price",
    "note",
    "current_stock",
    "min_threshold",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_references(patch: dict) -> None:
    """Referenced category/brand/motorcycle must exist."""
    if "category_id" in patch and db.session.get(Category, patch["category_id"]) is None:
        raise ValidationError("categoryId does not reference an existing category")
    if "brand_id" in patch and db.session.get(Brand, patch["brand_id"]) is None:
        raise ValidationError("brandId does not reference an existing brand")
    motorcycle_id = patch.get("motorcycle_id")
    if motorcycle_id is not None and db.session.get(Motorcycle, motorcycle_id) is None:
        raise ValidationError("motorcycleId does not reference an existing motorcycle")


def _base_query():
    return db.session.query(Product).options(
        joinedload(Product.category),
        joinedload(Product.brand),
        joinedload(Product.motorcycle),
    )


def list_products(
    category_id: int | None = None,
    brand_id: int | None = None,
    low_stock: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional filters and pagination.

    Args:
        category_id: Only products in this category
        brand_id: Only products of this brand
        low_stock: Only products at or below their minimum threshold
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = _base_query()
    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    if brand_id is not None:
        base_query = base_query.filter(Product.brand_id == brand_id)
    if low_stock:
        base_query = base_query.filter(Product.current_stock <= Product.min_threshold)

    base_query = base_query.order_by(Product.id.asc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> dict | None:
    p = _base_query().filter(Product.id == product_id).first()
    return p.to_dict() if p else None


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        ValidationError: If a referenced category/brand/motorcycle is missing
    """
    _check_references(patch)

    p = Product()
    apply_product_patch(p, patch)
    db.session.add(p)
    db.session.commit()

    return get_product(p.id)


def update_product(*, product_id: int, patch: dict) -> dict | None:
    """
    Update a product.

    Returns:
        Updated product dict, or None if not found
    """
    p = db.session.get(Product, product_id)
    if not p:
        return None

    _check_references(patch)
    apply_product_patch(p, patch)
    db.session.commit()

    return get_product(p.id)


def delete_product(*, product_id: int) -> bool:
    """
    Hard-delete a product and its compatibility rows.

    Products that appear on a recorded transaction are kept: deleting them
    would make the transaction's stock reversal impossible.

    Raises:
        ConflictError: If the product has transaction history
    """
    p = db.session.get(Product, product_id)
    if not p:
        return False

    used = db.session.query(TransactionItem.id).filter(TransactionItem.product_id == p.id).count()
    if used:
        raise ConflictError("Product has transaction history and cannot be deleted")

    db.session.query(ProductMotorcycleCompatibility).filter(
        ProductMotorcycleCompatibility.product_id == p.id
    ).delete(synchronize_session=False)

    db.session.delete(p)
    db.session.commit()
    return True


def get_inventory_summary() -> dict:
    """Dashboard figures across all products."""
    row = db.session.query(
        db.func.count(Product.id),
        db.func.coalesce(db.func.sum(Product.current_stock), 0),
        db.func.coalesce(db.func.sum(Product.buy_price), 0),
        db.func.coalesce(db.func.sum(Product.sell_price), 0),
    ).one()

    low_stock = (
        db.session.query(db.func.count(Product.id))
        .filter(Product.current_stock <= Product.min_threshold)
        .scalar()
    )

    return {
        "totalProducts": int(row[0] or 0),
        "totalStock": int(row[1] or 0),
        "lowStockCount": int(low_stock or 0),
        "totalBuyPrice": int(row[2] or 0),
        "totalSellPrice": int(row[3] or 0),
    }
