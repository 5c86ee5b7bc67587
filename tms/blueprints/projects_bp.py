"""
Projects Blueprint.

  GET    /projects[?archived=true|false]      — list (all / archived / active)
  GET    /project?id=                         — detail
  POST   /project                             — create (manager)
  DELETE /project?id=                         — hard delete, cascades (manager)
  POST   /project/archive?id=                 — soft archive (manager)
  POST   /project/set-completion-date?id=     — body {completion_date} (manager)
  POST   /project/set-description?id=         — body {description} (manager)
"""

from flask import Blueprint, jsonify

from tms.blueprints import bool_param, int_param, json_body
from tms.middleware.role_required import require_role
from tms.models.auth import ROLE_MANAGER, ROLES
from tms.services import project_service
from tms.utils.helpers import db_commit_or_error

projects_bp = Blueprint("projects_bp", __name__)


@projects_bp.route("/projects", methods=["GET"])
@require_role(*ROLES)
def list_projects():
    projects = project_service.list_projects(archived=bool_param("archived"))
    return jsonify([p.to_dict() for p in projects])


@projects_bp.route("/project", methods=["GET"])
@require_role(*ROLES)
def get_project():
    project = project_service.get_project(int_param("id"))
    return jsonify(project.to_dict())


@projects_bp.route("/project", methods=["POST"])
@require_role(ROLE_MANAGER)
def create_project():
    project = project_service.create_project(json_body())
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"id": project.id}), 201


@projects_bp.route("/project", methods=["DELETE"])
@require_role(ROLE_MANAGER)
def delete_project():
    project_service.delete_project(int_param("id"))
    err = db_commit_or_error()
    if err:
        return err
    return "", 204


@projects_bp.route("/project/archive", methods=["POST"])
@require_role(ROLE_MANAGER)
def archive_project():
    project_service.archive_project(int_param("id"))
    err = db_commit_or_error()
    if err:
        return err
    return "", 204


@projects_bp.route("/project/set-completion-date", methods=["POST"])
@require_role(ROLE_MANAGER)
def set_completion_date():
    project_service.set_completion_date(
        int_param("id"), json_body().get("completion_date"),
    )
    err = db_commit_or_error()
    if err:
        return err
    return "", 204


@projects_bp.route("/project/set-description", methods=["POST"])
@require_role(ROLE_MANAGER)
def set_description():
    project_service.set_description(int_param("id"), json_body().get("description"))
    err = db_commit_or_error()
    if err:
        return err
    return "", 204
