"""Testing service layer — test cases, suites, plans and reports.

Transaction policy: methods use flush() for ID generation, never commit().
Caller (route handler) is responsible for db.session.commit().
Exception: create_test_cases_batch() owns its transaction because a
batch is all-or-nothing; it commits on success and rolls back every row
on any failure.

Association helpers (requirement ↔ test case, test case ↔ suite) are
idempotent: adding an existing pair or removing a missing one is a no-op.
"""
import logging

from tms.core.exceptions import NotFoundError, ValidationError
from tms.models import db
from tms.models.requirement import Requirement
from tms.models.testing import (
    TEST_CASE_STATUSES,
    TestCase, TestPlan, TestReport, TestSuite,
)
from tms.services.project_service import get_project
from tms.utils.helpers import parse_date_input

logger = logging.getLogger(__name__)

BATCH_DESCRIPTION_PREFIX = "Description: "


# ── Shared helpers ───────────────────────────────────────────────────────────

def _get_or_404(model, pk, label):
    obj = db.session.get(model, pk)
    if obj is None:
        raise NotFoundError(resource=label, resource_id=pk)
    return obj


def _required_name(data):
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    return name.strip()


def _optional_text(data, field):
    value = data.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value


def _set_description(obj, description):
    if description is None:
        raise ValidationError("description is required")
    if not isinstance(description, str):
        raise ValidationError("description must be a string")
    obj.description = description
    db.session.flush()
    return obj


# ═════════════════════════════════════════════════════════════════════════════
# TEST CASES
# ═════════════════════════════════════════════════════════════════════════════

def get_test_case(test_case_id) -> TestCase:
    return _get_or_404(TestCase, test_case_id, "Test case")


def list_test_cases(project_id) -> list[TestCase]:
    get_project(project_id)
    return TestCase.query.filter_by(project_id=project_id).order_by(TestCase.id).all()


def _build_test_case(project_id, data):
    status = data.get("status") or "not_run"
    if status not in TEST_CASE_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(sorted(TEST_CASE_STATUSES))}"
        )
    return TestCase(
        project_id=project_id,
        name=_required_name(data),
        description=_optional_text(data, "description"),
        status=status,
        json_data=data.get("json_data"),
    )


def create_test_case(data: dict) -> TestCase:
    project_id = data.get("project_id")
    get_project(project_id)
    tc = _build_test_case(project_id, data)
    db.session.add(tc)
    db.session.flush()
    return tc


def _normalize_batch_item(item):
    """Blank names fall back to the description, which then gets a prefix."""
    if not isinstance(item, dict):
        raise ValidationError("each test case must be a JSON object")
    data = dict(item)
    for field in ("name", "description"):
        if data.get(field) is not None and not isinstance(data[field], str):
            raise ValidationError(f"{field} must be a string")
    name = (data.get("name") or "").strip()
    description = data.get("description") or ""
    if not name and description:
        data["name"] = description
        data["description"] = BATCH_DESCRIPTION_PREFIX + description
    return data


def create_test_cases_batch(project_id, items) -> list[int]:
    """Insert every item as a test case of the project, or none of them.

    Returns:
        The new ids, in input order.
    """
    get_project(project_id)
    if not isinstance(items, list) or not items:
        raise ValidationError("body must be a non-empty JSON array of test cases")

    try:
        ids = []
        for index, item in enumerate(items):
            try:
                tc = _build_test_case(project_id, _normalize_batch_item(item))
            except ValidationError as exc:
                raise ValidationError(f"item {index}: {exc}") from exc
            db.session.add(tc)
            db.session.flush()
            ids.append(tc.id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.warning("Batch insert of %d test case(s) rolled back", len(items))
        raise

    logger.info("Batch-created %d test case(s) for project %s", len(ids), project_id)
    return ids


def delete_test_case(test_case_id) -> None:
    tc = get_test_case(test_case_id)
    db.session.delete(tc)
    db.session.flush()


def set_test_case_description(test_case_id, description) -> TestCase:
    return _set_description(get_test_case(test_case_id), description)


def add_requirement(test_case_id, requirement_id) -> TestCase:
    tc = get_test_case(test_case_id)
    req = _get_or_404(Requirement, requirement_id, "Requirement")
    if req not in tc.requirements:
        tc.requirements.append(req)
        db.session.flush()
    return tc


def remove_requirement(test_case_id, requirement_id) -> TestCase:
    tc = get_test_case(test_case_id)
    req = db.session.get(Requirement, requirement_id)
    if req is not None and req in tc.requirements:
        tc.requirements.remove(req)
        db.session.flush()
    return tc


# ═════════════════════════════════════════════════════════════════════════════
# TEST SUITES
# ═════════════════════════════════════════════════════════════════════════════

def get_test_suite(test_suite_id) -> TestSuite:
    return _get_or_404(TestSuite, test_suite_id, "Test suite")


def list_test_suites(project_id=None) -> list[TestSuite]:
    query = TestSuite.query
    if project_id is not None:
        get_project(project_id)
        query = query.filter_by(project_id=project_id)
    return query.order_by(TestSuite.id).all()


def create_test_suite(data: dict) -> TestSuite:
    project_id = data.get("project_id")
    get_project(project_id)
    suite = TestSuite(
        project_id=project_id,
        name=_required_name(data),
        description=_optional_text(data, "description"),
    )
    db.session.add(suite)
    db.session.flush()
    return suite


def delete_test_suite(test_suite_id) -> None:
    suite = get_test_suite(test_suite_id)
    db.session.delete(suite)
    db.session.flush()


def set_test_suite_description(test_suite_id, description) -> TestSuite:
    return _set_description(get_test_suite(test_suite_id), description)


def add_test_case_to_suite(test_suite_id, test_case_id) -> TestSuite:
    suite = get_test_suite(test_suite_id)
    tc = get_test_case(test_case_id)
    if tc.project_id != suite.project_id:
        raise ValidationError("Test case and test suite belong to different projects")
    if tc not in suite.test_cases:
        suite.test_cases.append(tc)
        db.session.flush()
    return suite


def remove_test_case_from_suite(test_suite_id, test_case_id) -> TestSuite:
    suite = get_test_suite(test_suite_id)
    tc = db.session.get(TestCase, test_case_id)
    if tc is not None and tc in suite.test_cases:
        suite.test_cases.remove(tc)
        db.session.flush()
    return suite


# ═════════════════════════════════════════════════════════════════════════════
# TEST PLANS
# ═════════════════════════════════════════════════════════════════════════════

def get_test_plan(test_plan_id) -> TestPlan:
    return _get_or_404(TestPlan, test_plan_id, "Test plan")


def list_test_plans(project_id=None) -> list[TestPlan]:
    query = TestPlan.query
    if project_id is not None:
        get_project(project_id)
        query = query.filter_by(project_id=project_id)
    return query.order_by(TestPlan.id).all()


def create_test_plan(data: dict) -> TestPlan:
    project_id = data.get("project_id")
    get_project(project_id)
    try:
        deadline = parse_date_input(data.get("deadline"))
    except ValueError as exc:
        raise ValidationError(f"deadline: {exc}")
    plan = TestPlan(
        project_id=project_id,
        name=_required_name(data),
        description=_optional_text(data, "description"),
        goal=_optional_text(data, "goal"),
        deadline=deadline,
    )
    db.session.add(plan)
    db.session.flush()
    return plan


def delete_test_plan(test_plan_id) -> None:
    plan = get_test_plan(test_plan_id)
    db.session.delete(plan)
    db.session.flush()


def set_test_plan_description(test_plan_id, description) -> TestPlan:
    return _set_description(get_test_plan(test_plan_id), description)


# ═════════════════════════════════════════════════════════════════════════════
# TEST REPORTS (read-only; written by run_service)
# ═════════════════════════════════════════════════════════════════════════════

def get_test_report(report_id) -> TestReport:
    return _get_or_404(TestReport, report_id, "Test report")


def list_test_reports(project_id=None) -> list[TestReport]:
    query = TestReport.query
    if project_id is not None:
        get_project(project_id)
        query = query.filter_by(project_id=project_id)
    return query.order_by(TestReport.id.desc()).all()
