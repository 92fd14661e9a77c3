# Overview: Flask API routes for login, logout and session validation.

from flask import Blueprint, request, jsonify, current_app

from ..services import auth_service
from ..decorators import bearer_token

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with username/password and start a session.

    Body: {username, password}
    Returns {success, data: {user, token}} on success.
    """
    try:
        data = request.get_json(silent=True) or {}
        username = (data.get("username") or "").strip()
        password = data.get("password") or ""

        if not username or not password:
            return jsonify({"success": False, "message": "username and password required"}), 400

        user = auth_service.authenticate(username, password)
        if not user:
            current_app.logger.warning("Failed login for %r from %s", username, request.remote_addr)
            return jsonify({"success": False, "message": "Invalid credentials"}), 401

        _session, token = auth_service.create_session(user)

        return jsonify({
            "success": True,
            "data": {
                "user": user.to_dict(),
                "token": token,
            },
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"success": False, "message": "Server error during login"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    token = bearer_token()
    if not token:
        return jsonify({"success": False, "message": "Authorization header required"}), 401

    if not auth_service.revoke_session(token):
        return jsonify({"success": False, "message": "Invalid or expired token"}), 401

    return jsonify({"success": True, "message": "Logged out successfully"}), 200


@auth_bp.get("/validate")
def validate_route():
    token = bearer_token()
    if not token:
        return jsonify({"success": False, "message": "Authorization header required"}), 401

    user = auth_service.validate_session(token)
    if not user:
        return jsonify({"success": False, "message": "Invalid or expired token"}), 401

    return jsonify({"success": True, "data": {"user": user.to_dict()}}), 200
