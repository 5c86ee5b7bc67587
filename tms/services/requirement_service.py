"""Requirement listing — local table or Rodik, depending on integration mode.

In integration mode the requirements Rodik returns are mirrored into the
local ``requirements`` table (insert or update by id) so that test cases
can be linked to them. The mirror write is committed here.
"""
import logging
from datetime import datetime

from flask import current_app

from tms.core.exceptions import IntegrationError, ValidationError
from tms.integrations.rodik_gateway import rodik_gateway
from tms.models import db
from tms.models.requirement import Requirement
from tms.services.project_service import get_project

logger = logging.getLogger(__name__)


def integration_enabled() -> bool:
    return bool(current_app.config.get("INTEGRATION_ENABLED"))


def list_requirements(project_id=None) -> list[dict]:
    if integration_enabled():
        return fetch_rodik_requirements(project_id)
    return [r.to_dict() for r in Requirement.query.order_by(Requirement.name).all()]


def fetch_rodik_requirements(project_id) -> list[dict]:
    """Fetch a project's requirements from Rodik and mirror them locally.

    Raises:
        ValidationError: project_id missing, or the project has no Rodik id.
        NotFoundError: unknown project.
        IntegrationError: Rodik call failed.
    """
    project = get_project(project_id)
    if not project.rodik_project_id:
        raise ValidationError(f"Project {project.id} is not linked to a Rodik project")

    result = rodik_gateway.fetch_requirements(project.rodik_project_id)
    if not result.ok:
        logger.error(
            "Rodik requirement fetch failed project=%s status=%s error=%s",
            project.id, result.status_code, result.error,
        )
        raise IntegrationError(result.error or "Rodik request failed", result.status_code)

    requirements = result.data or []
    _mirror(requirements)
    return requirements


def _mirror(requirements: list[dict]) -> None:
    for item in requirements:
        req_id = item.get("id")
        if not req_id:
            continue
        req = db.session.get(Requirement, req_id)
        if req is None:
            req = Requirement(id=req_id)
            db.session.add(req)
        req.name = item.get("name") or ""
        req.description = item.get("description") or ""
        created_at = _parse_timestamp(item.get("created_at"))
        if created_at is not None:
            req.created_at = created_at
    db.session.commit()


def _parse_timestamp(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
