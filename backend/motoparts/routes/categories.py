# Overview: Flask API routes for product categories.

from flask import Blueprint, jsonify, request

from ..models import Category
from ..services import catalog_service
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, ConflictError
from ..decorators import require_auth

CATEGORY_POLICY = ModelValidationPolicy(fields={"name": "name"}, required_on_create={"name"})

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories_route():
    return jsonify(catalog_service.list_categories()), 200


@categories_bp.get("/<int:category_id>")
def get_category_route(category_id: int):
    category = catalog_service.get_category(category_id)
    if not category:
        return {"error": "Category not found"}, 404
    return category, 200


@categories_bp.post("")
@require_auth
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        created = catalog_service.create_category(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return created, 201


@categories_bp.put("/<int:category_id>")
@require_auth
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        updated = catalog_service.update_category(category_id=category_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    if not updated:
        return {"error": "Category not found"}, 404
    return updated, 200


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category_route(category_id: int):
    try:
        deleted = catalog_service.delete_category(category_id=category_id)
    except ConflictError as e:
        return {"error": str(e)}, 409
    if not deleted:
        return {"error": "Category not found"}, 404
    return "", 204
