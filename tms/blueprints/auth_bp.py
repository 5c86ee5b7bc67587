"""
Auth Blueprint — login and service status.

  POST /login    — username + password → {token, user}
  GET  /status   — public liveness probe
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from tms.services.jwt_service import generate_access_token
from tms.services.user_service import AuthenticationError, authenticate_user

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth_bp", __name__)


# ═══════════════════════════════════════════════════════════════
# POST /login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with username + password, return an access token.

    Body: { "username": "...", "password": "..." }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid request body"}), 400

    username = data.get("username")
    password = data.get("password")
    if not isinstance(username, str) or not isinstance(password, str):
        return jsonify({"error": "Username and password are required"}), 400
    username = username.strip()
    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    try:
        user = authenticate_user(username, password)
    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401

    token = generate_access_token(user.id, user.username, user.role)
    logger.info("User '%s' logged in", user.username)
    return jsonify({"token": token, "user": user.to_dict()}), 200


# ═══════════════════════════════════════════════════════════════
# GET /status
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/status", methods=["GET"])
def status():
    from tms import __version__

    return jsonify({
        "status": "ok",
        "version": __version__,
        "integration": bool(current_app.config.get("INTEGRATION_ENABLED")),
    }), 200
