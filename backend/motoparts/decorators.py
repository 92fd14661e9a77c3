# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import auth_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid session token when AUTH_REQUIRED is enabled.

    Sets g.current_user to the authenticated User (None when auth is off).

    Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_app.config.get("AUTH_REQUIRED", False):
            g.current_user = None
            return f(*args, **kwargs)

        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        user = auth_service.validate_session(token)
        if not user:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function
