"""
Users Blueprint — account administration (admin only).

  GET  /users
  POST /user   — body {username, password, name, role}
"""

from flask import Blueprint, jsonify

from tms.blueprints import json_body
from tms.middleware.role_required import require_role
from tms.models.auth import ROLE_ADMIN
from tms.services import user_service
from tms.utils.helpers import db_commit_or_error

users_bp = Blueprint("users_bp", __name__)


@users_bp.route("/users", methods=["GET"])
@require_role(ROLE_ADMIN)
def list_users():
    return jsonify([u.to_dict() for u in user_service.list_users()])


@users_bp.route("/user", methods=["POST"])
@require_role(ROLE_ADMIN)
def create_user():
    data = json_body()
    user = user_service.create_user(
        data.get("username"), data.get("password"), data.get("name"), data.get("role"),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"id": user.id}), 201
