# Overview: Flask API routes for motorcycles (the models parts are fitted to).

from flask import Blueprint, jsonify, request

from ..models import Motorcycle
from ..services import catalog_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_motorcycle,
    ValidationError,
)
from ..decorators import require_auth

MOTORCYCLE_POLICY = ModelValidationPolicy(
    fields={"manufacturer": "manufacturer", "model": "model", "type": "type"},
    required_on_create={"manufacturer"},
)

motorcycles_bp = Blueprint("motorcycles", __name__, url_prefix="/api/motorcycles")


@motorcycles_bp.get("")
def list_motorcycles_route():
    """All motorcycles ordered by manufacturer, then model."""
    return jsonify(catalog_service.list_motorcycles()), 200


@motorcycles_bp.get("/<int:motorcycle_id>")
def get_motorcycle_route(motorcycle_id: int):
    motorcycle = catalog_service.get_motorcycle(motorcycle_id)
    if not motorcycle:
        return {"error": "Motorcycle not found"}, 404
    return motorcycle, 200


@motorcycles_bp.post("")
@require_auth
def create_motorcycle_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Motorcycle, payload=payload, policy=MOTORCYCLE_POLICY, partial=False)
        enforce_rules_motorcycle(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return catalog_service.create_motorcycle(patch=patch), 201


@motorcycles_bp.put("/<int:motorcycle_id>")
@require_auth
def update_motorcycle_route(motorcycle_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Motorcycle, payload=payload, policy=MOTORCYCLE_POLICY, partial=True)
        enforce_rules_motorcycle(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    updated = catalog_service.update_motorcycle(motorcycle_id=motorcycle_id, patch=patch)
    if not updated:
        return {"error": "Motorcycle not found"}, 404
    return updated, 200


@motorcycles_bp.delete("/<int:motorcycle_id>")
@require_auth
def delete_motorcycle_route(motorcycle_id: int):
    """Delete a motorcycle, its compatibility rows and product references to it."""
    if not catalog_service.delete_motorcycle(motorcycle_id=motorcycle_id):
        return {"error": "Motorcycle not found"}, 404
    return "", 204
