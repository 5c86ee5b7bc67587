"""
Testing Blueprint — test cases, suites, plans, reports and test runs.

Test cases:
  GET    /test-cases?project_id=                         — list for a project
  POST   /test-cases?project_id=                         — batch create (all-or-nothing)
  GET    /test-case?id=                                  — detail with links
  POST   /test-case                                      — create
  DELETE /test-case?id=                                  — delete
  POST   /test-case/add-requirement?test_case_id=&requirement_id=
  POST   /test-case/remove-requirement?test_case_id=&requirement_id=
  POST   /test-case/set-description?id=

Test suites:
  GET    /test-suites[?project_id=]
  GET    /test-suite?id=                                 — detail with test_case_ids
  POST   /test-suite
  DELETE /test-suite?id=
  POST   /test-suite/add-test-case?test_suite_id=&test_case_id=
  POST   /test-suite/remove-test-case?test_suite_id=&test_case_id=
  POST   /test-suite/set-description?id=

Test plans:
  GET    /test-plans[?project_id=]
  GET    /test-plan?id=
  POST   /test-plan
  DELETE /test-plan?id=
  POST   /test-plan/set-description?id=

Runs & reports:
  POST   /run-tests                                      — body {project_id, test_plan_id?, test_suite_id?}
  GET    /test-reports[?project_id=]
  GET    /test-report?id=

Roles: reads → any role; case authoring and requirement links → manager or
test-analyst; suites and plans → manager; runs → manager or tester.
"""

from flask import Blueprint, jsonify, request

from tms.blueprints import int_param, json_body, uuid_param
from tms.middleware.role_required import require_role
from tms.models.auth import ROLE_MANAGER, ROLE_TEST_ANALYST, ROLE_TESTER, ROLES
from tms.services import run_service, testing_service
from tms.utils.helpers import db_commit_or_error

testing_bp = Blueprint("testing_bp", __name__)

CASE_AUTHORS = (ROLE_MANAGER, ROLE_TEST_ANALYST)
RUNNERS = (ROLE_MANAGER, ROLE_TESTER)


def _commit_or_204():
    err = db_commit_or_error()
    if err:
        return err
    return "", 204


def _with_project_id(data):
    data = dict(data)
    data["project_id"] = int_param("project_id")
    return data


# ═════════════════════════════════════════════════════════════════════════════
# TEST CASES
# ═════════════════════════════════════════════════════════════════════════════

@testing_bp.route("/test-cases", methods=["GET"])
@require_role(*ROLES)
def list_test_cases():
    cases = testing_service.list_test_cases(int_param("project_id"))
    return jsonify([tc.to_dict() for tc in cases])


@testing_bp.route("/test-cases", methods=["POST"])
@require_role(*CASE_AUTHORS)
def create_test_cases_batch():
    """Body: [ {name?, description?, status?, json_data?}, ... ]"""
    project_id = int_param("project_id")
    items = request.get_json(silent=True)
    if not isinstance(items, list):
        return jsonify({"error": "Body must be a JSON array of test cases"}), 400

    ids = testing_service.create_test_cases_batch(project_id, items)
    return jsonify({"ids": ids}), 201


@testing_bp.route("/test-case", methods=["GET"])
@require_role(*ROLES)
def get_test_case():
    tc = testing_service.get_test_case(int_param("id"))
    return jsonify(tc.to_dict(include_links=True))


@testing_bp.route("/test-case", methods=["POST"])
@require_role(*CASE_AUTHORS)
def create_test_case():
    tc = testing_service.create_test_case(_with_project_id(json_body()))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"id": tc.id}), 201


@testing_bp.route("/test-case", methods=["DELETE"])
@require_role(*CASE_AUTHORS)
def delete_test_case():
    testing_service.delete_test_case(int_param("id"))
    return _commit_or_204()


@testing_bp.route("/test-case/add-requirement", methods=["POST"])
@require_role(*CASE_AUTHORS)
def add_requirement():
    testing_service.add_requirement(int_param("test_case_id"), uuid_param("requirement_id"))
    return _commit_or_204()


@testing_bp.route("/test-case/remove-requirement", methods=["POST"])
@require_role(*CASE_AUTHORS)
def remove_requirement():
    testing_service.remove_requirement(int_param("test_case_id"), uuid_param("requirement_id"))
    return _commit_or_204()


@testing_bp.route("/test-case/set-description", methods=["POST"])
@require_role(*CASE_AUTHORS)
def set_test_case_description():
    testing_service.set_test_case_description(int_param("id"), json_body().get("description"))
    return _commit_or_204()


# ═════════════════════════════════════════════════════════════════════════════
# TEST SUITES
# ═════════════════════════════════════════════════════════════════════════════

@testing_bp.route("/test-suites", methods=["GET"])
@require_role(*ROLES)
def list_test_suites():
    suites = testing_service.list_test_suites(int_param("project_id", required=False))
    return jsonify([s.to_dict() for s in suites])


@testing_bp.route("/test-suite", methods=["GET"])
@require_role(*ROLES)
def get_test_suite():
    suite = testing_service.get_test_suite(int_param("id"))
    return jsonify(suite.to_dict(include_cases=True))


@testing_bp.route("/test-suite", methods=["POST"])
@require_role(ROLE_MANAGER)
def create_test_suite():
    suite = testing_service.create_test_suite(_with_project_id(json_body()))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"id": suite.id}), 201


@testing_bp.route("/test-suite", methods=["DELETE"])
@require_role(ROLE_MANAGER)
def delete_test_suite():
    testing_service.delete_test_suite(int_param("id"))
    return _commit_or_204()


@testing_bp.route("/test-suite/add-test-case", methods=["POST"])
@require_role(ROLE_MANAGER)
def add_test_case_to_suite():
    testing_service.add_test_case_to_suite(int_param("test_suite_id"), int_param("test_case_id"))
    return _commit_or_204()


@testing_bp.route("/test-suite/remove-test-case", methods=["POST"])
@require_role(ROLE_MANAGER)
def remove_test_case_from_suite():
    testing_service.remove_test_case_from_suite(
        int_param("test_suite_id"), int_param("test_case_id"),
    )
    return _commit_or_204()


@testing_bp.route("/test-suite/set-description", methods=["POST"])
@require_role(ROLE_MANAGER)
def set_test_suite_description():
    testing_service.set_test_suite_description(int_param("id"), json_body().get("description"))
    return _commit_or_204()


# ═════════════════════════════════════════════════════════════════════════════
# TEST PLANS
# ═════════════════════════════════════════════════════════════════════════════

@testing_bp.route("/test-plans", methods=["GET"])
@require_role(*ROLES)
def list_test_plans():
    plans = testing_service.list_test_plans(int_param("project_id", required=False))
    return jsonify([p.to_dict() for p in plans])


@testing_bp.route("/test-plan", methods=["GET"])
@require_role(*ROLES)
def get_test_plan():
    plan = testing_service.get_test_plan(int_param("id"))
    return jsonify(plan.to_dict())


@testing_bp.route("/test-plan", methods=["POST"])
@require_role(ROLE_MANAGER)
def create_test_plan():
    plan = testing_service.create_test_plan(_with_project_id(json_body()))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"id": plan.id}), 201


@testing_bp.route("/test-plan", methods=["DELETE"])
@require_role(ROLE_MANAGER)
def delete_test_plan():
    testing_service.delete_test_plan(int_param("id"))
    return _commit_or_204()


@testing_bp.route("/test-plan/set-description", methods=["POST"])
@require_role(ROLE_MANAGER)
def set_test_plan_description():
    testing_service.set_test_plan_description(int_param("id"), json_body().get("description"))
    return _commit_or_204()


# ═════════════════════════════════════════════════════════════════════════════
# RUNS & REPORTS
# ═════════════════════════════════════════════════════════════════════════════

@testing_bp.route("/run-tests", methods=["POST"])
@require_role(*RUNNERS)
def run_tests():
    result = run_service.run_tests(
        int_param("project_id"),
        test_plan_id=int_param("test_plan_id", required=False),
        test_suite_id=int_param("test_suite_id", required=False),
    )
    return jsonify(result), 201


@testing_bp.route("/test-reports", methods=["GET"])
@require_role(*ROLES)
def list_test_reports():
    reports = testing_service.list_test_reports(int_param("project_id", required=False))
    return jsonify([r.to_dict() for r in reports])


@testing_bp.route("/test-report", methods=["GET"])
@require_role(*ROLES)
def get_test_report():
    report = testing_service.get_test_report(int_param("id"))
    return jsonify(report.to_dict())
