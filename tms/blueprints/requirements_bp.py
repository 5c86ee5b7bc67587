"""
Requirements Blueprint.

  GET /requirements[?project_id=]

Local mode lists the local requirements table. Integration mode needs
project_id and proxies to Rodik with the project's rodik_project_id.
"""

from flask import Blueprint, jsonify

from tms.blueprints import int_param
from tms.middleware.role_required import require_role
from tms.models.auth import ROLES
from tms.services import requirement_service

requirements_bp = Blueprint("requirements_bp", __name__)


@requirements_bp.route("/requirements", methods=["GET"])
@require_role(*ROLES)
def list_requirements():
    project_id = int_param(
        "project_id", required=requirement_service.integration_enabled(),
    )
    return jsonify(requirement_service.list_requirements(project_id))
