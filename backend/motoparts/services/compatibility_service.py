# Overview: Service-layer operations for product/motorcycle compatibility.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Motorcycle, Product, ProductMotorcycleCompatibility
from ..validation import ConflictError


class CompatibilityNotFoundError(LookupError):
    """Raised when a product, motorcycle or compatibility pair does not exist."""


def _require_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise CompatibilityNotFoundError("Product not found")
    return product


def _require_motorcycle(motorcycle_id: int) -> Motorcycle:
    motorcycle = db.session.get(Motorcycle, motorcycle_id)
    if motorcycle is None:
        raise CompatibilityNotFoundError("Motorcycle not found")
    return motorcycle


def compatible_motorcycles(product_id: int) -> list[dict]:
    product = _require_product(product_id)
    return [m.to_dict() for m in product.compatible_motorcycles]


def compatible_products(motorcycle_id: int) -> list[dict]:
    motorcycle = _require_motorcycle(motorcycle_id)
    return [p.to_dict() for p in motorcycle.compatible_products]


def add_compatibility(product_id: int, motorcycle_id: int) -> ProductMotorcycleCompatibility:
    _require_product(product_id)
    _require_motorcycle(motorcycle_id)

    existing = (
        db.session.query(ProductMotorcycleCompatibility)
        .filter_by(product_id=product_id, motorcycle_id=motorcycle_id)
        .first()
    )
    if existing:
        raise ConflictError("Compatibility already exists")

    link = ProductMotorcycleCompatibility(product_id=product_id, motorcycle_id=motorcycle_id)
    db.session.add(link)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same pair
        db.session.rollback()
        raise ConflictError("Compatibility already exists")
    return link


def add_compatibilities(product_id: int, motorcycle_ids: list[int]) -> dict:
    """
    Link many motorcycles to one product, skipping pairs that already exist.

    Returns {"added": n, "alreadyExisting": m}.
    """
    _require_product(product_id)

    requested = list(dict.fromkeys(motorcycle_ids))
    for motorcycle_id in requested:
        _require_motorcycle(motorcycle_id)

    existing_ids = {
        row.motorcycle_id
        for row in db.session.query(ProductMotorcycleCompatibility.motorcycle_id)
        .filter(ProductMotorcycleCompatibility.product_id == product_id)
        .all()
    }

    new_ids = [mid for mid in requested if mid not in existing_ids]
    for motorcycle_id in new_ids:
        db.session.add(ProductMotorcycleCompatibility(product_id=product_id, motorcycle_id=motorcycle_id))
    db.session.commit()

    return {
        "added": len(new_ids),
        "alreadyExisting": len(motorcycle_ids) - len(new_ids),
    }


def remove_compatibility(product_id: int, motorcycle_id: int) -> None:
    removed = (
        db.session.query(ProductMotorcycleCompatibility)
        .filter_by(product_id=product_id, motorcycle_id=motorcycle_id)
        .delete(synchronize_session=False)
    )
    if removed == 0:
        db.session.rollback()
        raise CompatibilityNotFoundError("Compatibility not found")
    db.session.commit()


def clear_compatibilities(product_id: int) -> int:
    removed = (
        db.session.query(ProductMotorcycleCompatibility)
        .filter_by(product_id=product_id)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return removed


def compatibility_map(product_ids: list[int]) -> dict[int, list[dict]]:
    """Compatible motorcycles for each requested product; unknown ids map to []."""
    result: dict[int, list[dict]] = {pid: [] for pid in product_ids}

    products = (
        db.session.query(Product)
        .options(selectinload(Product.compatible_motorcycles))
        .filter(Product.id.in_(product_ids))
        .all()
    )
    for product in products:
        result[product.id] = [m.to_dict() for m in product.compatible_motorcycles]
    return result
