"""Project service — creation, lookup, archiving and field updates.

Transaction policy: functions flush() for ID generation, never commit().
The route handler commits through ``db_commit_or_error()``.
"""
import logging

from tms.core.exceptions import NotFoundError, ValidationError
from tms.models import db
from tms.models.project import PROJECT_STATUSES, Project
from tms.utils.helpers import parse_date_input, parse_uuid

logger = logging.getLogger(__name__)


def get_project(project_id) -> Project:
    if project_id is None:
        raise ValidationError("project_id is required")
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError(resource="Project", resource_id=project_id)
    return project


def list_projects(archived=None) -> list[Project]:
    """All projects, or only active (archived=False) / archived (archived=True) ones."""
    query = Project.query
    if archived is not None:
        query = query.filter(Project.is_archived == archived)
    return query.order_by(Project.id).all()


def create_project(data: dict) -> Project:
    name = str(data.get("name") or "").strip()
    responsible_name = str(data.get("responsible_name") or "").strip()
    if not name:
        raise ValidationError("name is required")
    if not responsible_name:
        raise ValidationError("responsible_name is required")

    status = data.get("status") or "active"
    if status not in PROJECT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(sorted(PROJECT_STATUSES))}")

    rodik_project_id = data.get("rodik_project_id")
    if rodik_project_id:
        try:
            rodik_project_id = parse_uuid(rodik_project_id)
        except ValueError:
            raise ValidationError("rodik_project_id must be a UUID")
    else:
        rodik_project_id = None

    project = Project(
        name=name,
        responsible_name=responsible_name,
        description=_optional_text(data, "description"),
        status=status,
        rodik_project_id=rodik_project_id,
    )
    if data.get("completion_date"):
        project.completion_date = _parse_date(data["completion_date"], "completion_date")

    db.session.add(project)
    db.session.flush()
    logger.info("Created project id=%s name=%s", project.id, name)
    return project


def delete_project(project_id) -> None:
    """Hard delete; test cases, plans, suites and reports go with it."""
    project = get_project(project_id)
    db.session.delete(project)
    db.session.flush()
    logger.info("Deleted project id=%s", project_id)


def archive_project(project_id) -> Project:
    project = get_project(project_id)
    project.is_archived = True
    db.session.flush()
    return project


def set_completion_date(project_id, value) -> Project:
    if not value:
        raise ValidationError("completion_date is required")
    project = get_project(project_id)
    project.completion_date = _parse_date(value, "completion_date")
    db.session.flush()
    return project


def set_description(project_id, description) -> Project:
    if description is None:
        raise ValidationError("description is required")
    if not isinstance(description, str):
        raise ValidationError("description must be a string")
    project = get_project(project_id)
    project.description = description
    db.session.flush()
    return project


def _optional_text(data, field):
    value = data.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value


def _parse_date(value, field):
    try:
        return parse_date_input(value)
    except ValueError as exc:
        raise ValidationError(f"{field}: {exc}")
