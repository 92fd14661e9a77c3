# backend/motoparts/services/catalog_service.py
"""
Reference data used to classify products: categories, brands and motorcycles.

Categories and brands are referenced by every product, so they cannot be
deleted while products still point at them. Deleting a motorcycle clears it
from products and drops its compatibility rows.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Brand, Category, Motorcycle, Product, ProductMotorcycleCompatibility
from ..validation import ConflictError

CATEGORY_MUTABLE_FIELDS = {"name"}
BRAND_MUTABLE_FIELDS = {"name"}
MOTORCYCLE_MUTABLE_FIELDS = {"manufacturer", "model", "type"}


def _apply_patch(obj, patch: dict, mutable_fields: set[str]) -> None:
    for k, v in patch.items():
        if k not in mutable_fields:
            continue
        setattr(obj, k, v)


def _ensure_unique_name(model, name: str | None, *, exclude_id: int | None = None) -> None:
    if name is None:
        return
    q = db.session.query(model).filter(db.func.lower(model.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(f"{model.__name__} '{name}' already exists")


def _commit_or_conflict(message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(message)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def list_categories() -> list[dict]:
    categories = db.session.query(Category).order_by(Category.name.asc()).all()
    return [c.to_dict() for c in categories]


def get_category(category_id: int) -> dict | None:
    category = db.session.get(Category, category_id)
    return category.to_dict() if category else None


def create_category(*, patch: dict) -> dict:
    _ensure_unique_name(Category, patch.get("name"))
    category = Category()
    _apply_patch(category, patch, CATEGORY_MUTABLE_FIELDS)
    db.session.add(category)
    _commit_or_conflict("Category already exists")
    return category.to_dict()


def update_category(*, category_id: int, patch: dict) -> dict | None:
    category = db.session.get(Category, category_id)
    if not category:
        return None
    _ensure_unique_name(Category, patch.get("name"), exclude_id=category.id)
    _apply_patch(category, patch, CATEGORY_MUTABLE_FIELDS)
    _commit_or_conflict("Category already exists")
    return category.to_dict()


def delete_category(*, category_id: int) -> bool:
    category = db.session.get(Category, category_id)
    if not category:
        return False
    in_use = db.session.query(Product.id).filter(Product.category_id == category.id).count()
    if in_use:
        raise ConflictError(f"Category is used by {in_use} product(s)")
    db.session.delete(category)
    db.session.commit()
    return True


# ---------------------------------------------------------------------------
# Brands
# ---------------------------------------------------------------------------

def list_brands() -> list[dict]:
    brands = db.session.query(Brand).order_by(Brand.name.asc()).all()
    return [b.to_dict() for b in brands]


def get_brand(brand_id: int) -> dict | None:
    brand = db.session.get(Brand, brand_id)
    return brand.to_dict() if brand else None


def create_brand(*, patch: dict) -> dict:
    _ensure_unique_name(Brand, patch.get("name"))
    brand = Brand()
    _apply_patch(brand, patch, BRAND_MUTABLE_FIELDS)
    db.session.add(brand)
    _commit_or_conflict("Brand already exists")
    return brand.to_dict()


def update_brand(*, brand_id: int, patch: dict) -> dict | None:
    brand = db.session.get(Brand, brand_id)
    if not brand:
        return None
    _ensure_unique_name(Brand, patch.get("name"), exclude_id=brand.id)
    _apply_patch(brand, patch, BRAND_MUTABLE_FIELDS)
    _commit_or_conflict("Brand already exists")
    return brand.to_dict()


def delete_brand(*, brand_id: int) -> bool:
    brand = db.session.get(Brand, brand_id)
    if not brand:
        return False
    in_use = db.session.query(Product.id).filter(Product.brand_id == brand.id).count()
    if in_use:
        raise ConflictError(f"Brand is used by {in_use} product(s)")
    db.session.delete(brand)
    db.session.commit()
    return True


# ---------------------------------------------------------------------------
# Motorcycles
# ---------------------------------------------------------------------------

def list_motorcycles() -> list[dict]:
    motorcycles = (
        db.session.query(Motorcycle)
        .order_by(Motorcycle.manufacturer.asc(), Motorcycle.model.asc())
        .all()
    )
    return [m.to_dict() for m in motorcycles]


def get_motorcycle(motorcycle_id: int) -> dict | None:
    motorcycle = db.session.get(Motorcycle, motorcycle_id)
    return motorcycle.to_dict() if motorcycle else None


def create_motorcycle(*, patch: dict) -> dict:
    motorcycle = Motorcycle()
    _apply_patch(motorcycle, patch, MOTORCYCLE_MUTABLE_FIELDS)
    db.session.add(motorcycle)
    db.session.commit()
    return motorcycle.to_dict()


def update_motorcycle(*, motorcycle_id: int, patch: dict) -> dict | None:
    motorcycle = db.session.get(Motorcycle, motorcycle_id)
    if not motorcycle:
        return None
    _apply_patch(motorcycle, patch, MOTORCYCLE_MUTABLE_FIELDS)
    db.session.commit()
    return motorcycle.to_dict()


def delete_motorcycle(*, motorcycle_id: int) -> bool:
    motorcycle = db.session.get(Motorcycle, motorcycle_id)
    if not motorcycle:
        return False

    # SQLite does not enforce ON DELETE actions unless foreign keys are enabled
    db.session.query(ProductMotorcycleCompatibility).filter(
        ProductMotorcycleCompatibility.motorcycle_id == motorcycle.id
    ).delete(synchronize_session=False)
    db.session.query(Product).filter(Product.motorcycle_id == motorcycle.id).update(
        {Product.motorcycle_id: None}, synchronize_session=False
    )

    db.session.delete(motorcycle)
    db.session.commit()
    return True
