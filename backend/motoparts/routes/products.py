# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/motoparts/routes/products.py
"""
Product management routes.

Reads are open. Writes go through @require_auth, which only demands a
token when AUTH_REQUIRED is enabled.
"""
from flask import Blueprint, request
from ..services.products_service import (
    list_products as list_products_service,
    get_product,
    get_inventory_summary,
)
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "categoryId": "category_id",
        "brandId": "brand_id",
        "motorcycleId": "motorcycle_id",
        "size": "size",
        "buyPrice": "buy_price",
        "sellPrice": "sell_price",
        "note": "note",
        "currentStock": "current_stock",
        "minThreshold": "min_threshold",
    },
    required_on_create={"categoryId", "brandId"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


@products_bp.get("")
def list_products():
    """
    List products with optional filters and pagination.

    Query params:
    - categoryId: int (optional)
    - brandId: int (optional)
    - lowStock: bool (optional) - only products at or below minThreshold
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return list_products_service(
        category_id=request.args.get("categoryId", type=int),
        brand_id=request.args.get("brandId", type=int),
        low_stock=_flag(request.args.get("lowStock")),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/summary")
def products_summary():
    """Dashboard totals: products, stock, low-stock count, price sums."""
    return get_inventory_summary()


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    product = get_product(product_id)
    if not product:
        return {"error": "Product not found"}, 404
    return product, 200


@products_bp.post("")
@require_auth
def create_product_route():
    """Create a new product."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    from ..services.products_service import create_product

    try:
        created = create_product(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created, 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """Update a product. currentStock may be set directly as a manual correction."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    from ..services.products_service import update_product

    try:
        updated = update_product(product_id=product_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    if not updated:
        return {"error": "Product not found"}, 404

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """Delete a product. Products with transaction history are kept (409)."""
    from ..services.products_service import delete_product

    try:
        deleted = delete_product(product_id=product_id)
    except ConflictError as e:
        return {"error": str(e)}, 409

    if not deleted:
        return {"error": "Product not found"}, 404

    return "", 204
