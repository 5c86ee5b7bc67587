"""
Role gate — JWT-aware decorator for route protection.

Usage:
    @bp.route("/project", methods=["POST"])
    @require_role(ROLE_MANAGER)
    def create_project():
        ...

    @bp.route("/projects", methods=["GET"])
    @require_role(*ROLES)
    def list_projects():
        ...

Order of checks:
    1. Trusted-caller bypass header (only when AUTH_BYPASS_TOKEN is set)
    2. Authorization header present           → else 401 "Missing authorization header"
    3. "Bearer <jwt>" verifies                 → else 401 "Invalid token"
    4. role claim among the allowed roles      → else 403 "Forbidden: invalid role"

On success g.current_user, g.current_user_id and g.current_role are set.
"""

import functools
import hmac
import logging

import jwt
from flask import current_app, g, jsonify, request

from tms.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)


def _bypass_requested() -> bool:
    expected = current_app.config.get("AUTH_BYPASS_TOKEN")
    if not expected:
        return False
    header_name = current_app.config.get("AUTH_BYPASS_HEADER", "Rodik")
    supplied = request.headers.get(header_name)
    if not supplied:
        return False
    return hmac.compare_digest(supplied.encode(), expected.encode())


def require_role(*roles: str):
    """
    Decorator: require a valid access token whose role is one of ``roles``.

    Args:
        roles: allowed role names, e.g. ROLE_MANAGER, ROLE_TEST_ANALYST
    """
    allowed = frozenset(roles)

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            if _bypass_requested():
                g.auth_bypass = True
                g.current_user = None
                g.current_user_id = None
                g.current_role = None
                return f(*args, **kwargs)

            g.auth_bypass = False
            auth_header = request.headers.get("Authorization", "")
            if not auth_header:
                return jsonify({"error": "Missing authorization header"}), 401

            if not auth_header.startswith("Bearer "):
                return jsonify({"error": "Invalid token"}), 401

            token = auth_header[7:].strip()
            try:
                payload = decode_access_token(token)
            except jwt.ExpiredSignatureError:
                logger.info("Expired token on %s", request.path)
                return jsonify({"error": "Invalid token"}), 401
            except jwt.InvalidTokenError as e:
                logger.info("Rejected token on %s: %s", request.path, e)
                return jsonify({"error": "Invalid token"}), 401

            role = payload.get("role")
            if role not in allowed:
                logger.warning(
                    "User '%s' denied: role '%s' not in %s on %s",
                    payload.get("sub"), role, sorted(allowed), f.__name__,
                )
                return jsonify({"error": "Forbidden: invalid role"}), 403

            g.current_user = payload.get("sub")
            g.current_user_id = payload.get("uid")
            g.current_role = role
            return f(*args, **kwargs)
        return decorated
    return decorator
