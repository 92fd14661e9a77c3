# Overview: Flask API routes linking products to the motorcycles they fit.

from flask import Blueprint, jsonify, request

from ..services import compatibility_service
from ..services.compatibility_service import CompatibilityNotFoundError
from ..validation import ConflictError, ValidationError, coerce_int
from ..decorators import require_auth

compatibility_bp = Blueprint("compatibility", __name__, url_prefix="/api")


@compatibility_bp.get("/products/<int:product_id>/compatible-motorcycles")
def compatible_motorcycles_route(product_id: int):
    try:
        motorcycles = compatibility_service.compatible_motorcycles(product_id)
    except CompatibilityNotFoundError as e:
        return {"error": str(e)}, 404
    return jsonify(motorcycles), 200


@compatibility_bp.get("/motorcycles/<int:motorcycle_id>/compatible-products")
def compatible_products_route(motorcycle_id: int):
    try:
        products = compatibility_service.compatible_products(motorcycle_id)
    except CompatibilityNotFoundError as e:
        return {"error": str(e)}, 404
    return jsonify(products), 200


@compatibility_bp.post("/products/<int:product_id>/motorcycles/<int:motorcycle_id>")
@require_auth
def add_compatibility_route(product_id: int, motorcycle_id: int):
    try:
        compatibility_service.add_compatibility(product_id, motorcycle_id)
    except CompatibilityNotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"message": "Compatibility added successfully"}, 201


@compatibility_bp.post("/products/<int:product_id>/motorcycles")
@require_auth
def add_compatibilities_route(product_id: int):
    """Body: {motorcycleIds: [int, ...]}"""
    payload = request.get_json(silent=True) or {}
    raw_ids = payload.get("motorcycleIds")

    if not isinstance(raw_ids, list) or not raw_ids:
        return {"error": "Invalid motorcycleIds array"}, 400

    try:
        motorcycle_ids = [coerce_int("motorcycleIds", v) for v in raw_ids]
        result = compatibility_service.add_compatibilities(product_id, motorcycle_ids)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except CompatibilityNotFoundError as e:
        return {"error": str(e)}, 404

    return {"message": "Compatibilities added successfully", **result}, 201


@compatibility_bp.delete("/products/<int:product_id>/motorcycles/<int:motorcycle_id>")
@require_auth
def remove_compatibility_route(product_id: int, motorcycle_id: int):
    try:
        compatibility_service.remove_compatibility(product_id, motorcycle_id)
    except CompatibilityNotFoundError as e:
        return {"error": str(e)}, 404
    return {"message": "Compatibility removed successfully"}, 200


@compatibility_bp.delete("/products/<int:product_id>/motorcycles")
@require_auth
def clear_compatibilities_route(product_id: int):
    removed = compatibility_service.clear_compatibilities(product_id)
    return {"message": "All compatibilities removed successfully", "removed": removed}, 200


@compatibility_bp.get("/product-compatibilities")
def compatibility_map_route():
    """Query: productIds=1,2,3 -> {"1": [...], "2": [...]}"""
    raw = request.args.get("productIds")
    if not raw:
        return {"error": "productIds parameter is required"}, 400

    try:
        product_ids = [int(part) for part in raw.split(",")]
    except ValueError:
        return {"error": "Invalid productIds parameter"}, 400

    mapping = compatibility_service.compatibility_map(product_ids)
    return jsonify({str(pid): motorcycles for pid, motorcycles in mapping.items()}), 200
