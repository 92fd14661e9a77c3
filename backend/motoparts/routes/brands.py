# Overview: Flask API routes for product brands.

from flask import Blueprint, jsonify, request

from ..models import Brand
from ..services import catalog_service
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, ConflictError
from ..decorators import require_auth

BRAND_POLICY = ModelValidationPolicy(fields={"name": "name"}, required_on_create={"name"})

brands_bp = Blueprint("brands", __name__, url_prefix="/api/brands")


@brands_bp.get("")
def list_brands_route():
    return jsonify(catalog_service.list_brands()), 200


@brands_bp.get("/<int:brand_id>")
def get_brand_route(brand_id: int):
    brand = catalog_service.get_brand(brand_id)
    if not brand:
        return {"error": "Brand not found"}, 404
    return brand, 200


@brands_bp.post("")
@require_auth
def create_brand_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=False)
        created = catalog_service.create_brand(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return created, 201


@brands_bp.put("/<int:brand_id>")
@require_auth
def update_brand_route(brand_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=True)
        updated = catalog_service.update_brand(brand_id=brand_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    if not updated:
        return {"error": "Brand not found"}, 404
    return updated, 200


@brands_bp.delete("/<int:brand_id>")
@require_auth
def delete_brand_route(brand_id: int):
    try:
        deleted = catalog_service.delete_brand(brand_id=brand_id)
    except ConflictError as e:
        return {"error": str(e)}, 409
    if not deleted:
        return {"error": "Brand not found"}, 404
    return "", 204
