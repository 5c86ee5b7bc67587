"""
Testing API tests — test cases, batch create, requirement links, suites,
plans and reports.
"""

import uuid

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from tms.models import db as _db
from tms.models.auth import ROLE_READER, ROLE_TEST_ANALYST, ROLE_TESTER
from tms.models.project import Project
from tms.models.requirement import Requirement
from tms.models.testing import TestCase as CaseModel
from tms.models.testing import TestPlan as PlanModel
from tms.models.testing import TestReport as ReportModel
from tms.models.testing import TestSuite as SuiteModel
from tms.services import testing_service


@pytest.fixture()
def analyst(auth_headers):
    return auth_headers(ROLE_TEST_ANALYST)


@pytest.fixture()
def requirement():
    req = Requirement(id=str(uuid.uuid4()), name="REQ-1", description="Users can pay")
    _db.session.add(req)
    _db.session.commit()
    return req


def _case(project, name="case", **kwargs):
    tc = CaseModel(project_id=project.id, name=name, **kwargs)
    _db.session.add(tc)
    _db.session.commit()
    return tc


# ═════════════════════════════════════════════════════════════════════════════
# TEST CASES
# ═════════════════════════════════════════════════════════════════════════════

class TestTestCases:
    def test_create_and_get(self, client, analyst, project):
        res = client.post("/test-case", json={
            "project_id": project.id,
            "name": "Pay with card",
            "description": "happy path",
            "json_data": {"priority": "high", "steps": ["open", "pay"]},
        }, headers=analyst)
        assert res.status_code == 201
        tc_id = res.get_json()["id"]

        data = client.get(f"/test-case?id={tc_id}", headers=analyst).get_json()
        assert data["name"] == "Pay with card"
        assert data["status"] == "not_run"
        assert data["json_data"] == {"priority": "high", "steps": ["open", "pay"]}
        assert data["requirement_ids"] == []
        assert data["suite_ids"] == []

    def test_project_id_in_query_string(self, client, analyst, project):
        res = client.post(
            f"/test-case?project_id={project.id}", json={"name": "x"}, headers=analyst,
        )
        assert res.status_code == 201
        assert CaseModel.query.one().project_id == project.id

    def test_create_requires_existing_project(self, client, analyst):
        res = client.post("/test-case", json={"project_id": 999, "name": "x"}, headers=analyst)
        assert res.status_code == 404

    def test_create_requires_name_and_project(self, client, analyst, project):
        assert client.post(
            "/test-case", json={"project_id": project.id}, headers=analyst,
        ).status_code == 400
        assert client.post("/test-case", json={"name": "x"}, headers=analyst).status_code == 400

    def test_create_rejects_unknown_status(self, client, analyst, project):
        res = client.post("/test-case", json={
            "project_id": project.id, "name": "x", "status": "flaky",
        }, headers=analyst)
        assert res.status_code == 400

    def test_tester_cannot_author(self, client, auth_headers, project):
        res = client.post(
            "/test-case", json={"project_id": project.id, "name": "x"},
            headers=auth_headers(ROLE_TESTER),
        )
        assert res.status_code == 403

    def test_list_by_project(self, client, analyst, project):
        other = Project(name="Other", responsible_name="Bob")
        _db.session.add(other)
        _db.session.commit()
        mine = _case(project, "mine")
        _case(other, "theirs")

        res = client.get(f"/test-cases?project_id={project.id}", headers=analyst)
        assert res.status_code == 200
        assert [tc["id"] for tc in res.get_json()] == [mine.id]

    def test_list_requires_project_id(self, client, analyst):
        assert client.get("/test-cases", headers=analyst).status_code == 400

    def test_delete(self, client, analyst, project):
        tc = _case(project)
        tc_id = tc.id
        assert client.delete(f"/test-case?id={tc_id}", headers=analyst).status_code == 204
        assert _db.session.get(CaseModel, tc_id) is None
        assert client.delete(f"/test-case?id={tc_id}", headers=analyst).status_code == 404

    def test_set_description(self, client, analyst, project):
        tc = _case(project)
        res = client.post(
            "/test-case/set-description", json={"id": tc.id, "description": "updated"},
            headers=analyst,
        )
        assert res.status_code == 204
        _db.session.refresh(tc)
        assert tc.description == "updated"

    def test_create_rejects_non_string_description(self, client, analyst, project):
        res = client.post("/test-case", json={
            "project_id": project.id, "name": "x", "description": {"a": 1},
        }, headers=analyst)
        assert res.status_code == 400
        assert res.get_json()["error"] == "description must be a string"
        assert CaseModel.query.count() == 0

    def test_set_description_rejects_non_string(self, client, analyst, project):
        tc = _case(project, description="kept")
        res = client.post(
            "/test-case/set-description", json={"id": tc.id, "description": ["a", "b"]},
            headers=analyst,
        )
        assert res.status_code == 400
        _db.session.refresh(tc)
        assert tc.description == "kept"

    def test_out_of_range_id(self, client, analyst):
        for raw in ("99999999999999999999", "0", "-4"):
            assert client.get(f"/test-case?id={raw}", headers=analyst).status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# BATCH CREATE
# ═════════════════════════════════════════════════════════════════════════════

class TestBatchCreate:
    def test_inserts_all_rows(self, client, analyst, project):
        items = [{"name": f"case {i}"} for i in range(5)]
        res = client.post(f"/test-cases?project_id={project.id}", json=items, headers=analyst)
        assert res.status_code == 201
        ids = res.get_json()["ids"]
        assert len(ids) == 5
        assert CaseModel.query.filter_by(project_id=project.id).count() == 5

    def test_empty_name_falls_back_to_description(self, client, analyst, project):
        res = client.post(
            f"/test-cases?project_id={project.id}",
            json=[{"name": "", "description": "User can log out"}],
            headers=analyst,
        )
        assert res.status_code == 201
        tc = _db.session.get(CaseModel, res.get_json()["ids"][0])
        assert tc.name == "User can log out"
        assert tc.description == "Description: User can log out"

    def test_one_bad_item_rolls_back_whole_batch(self, client, analyst, project):
        items = [
            {"name": "ok 1"},
            {"name": "ok 2"},
            {"name": "", "description": ""},
            {"name": "ok 3"},
        ]
        res = client.post(f"/test-cases?project_id={project.id}", json=items, headers=analyst)
        assert res.status_code == 400
        assert "ids" not in res.get_json()
        assert CaseModel.query.count() == 0

    def test_non_object_item_rolls_back(self, client, analyst, project):
        res = client.post(
            f"/test-cases?project_id={project.id}", json=[{"name": "ok"}, "oops"],
            headers=analyst,
        )
        assert res.status_code == 400
        assert CaseModel.query.count() == 0

    def test_requires_array_body(self, client, analyst, project):
        res = client.post(
            f"/test-cases?project_id={project.id}", json={"name": "x"}, headers=analyst,
        )
        assert res.status_code == 400

    def test_rejects_empty_array(self, client, analyst, project):
        res = client.post(f"/test-cases?project_id={project.id}", json=[], headers=analyst)
        assert res.status_code == 400

    def test_requires_project(self, client, analyst):
        assert client.post("/test-cases", json=[{"name": "x"}], headers=analyst).status_code == 400
        assert client.post(
            "/test-cases?project_id=77", json=[{"name": "x"}], headers=analyst,
        ).status_code == 404

    def test_non_string_name_rolls_back(self, client, analyst, project):
        res = client.post(
            f"/test-cases?project_id={project.id}", json=[{"name": "ok"}, {"name": 5}],
            headers=analyst,
        )
        assert res.status_code == 400
        assert res.get_json()["error"] == "item 1: name must be a string"
        assert CaseModel.query.count() == 0

    def test_non_string_description_fallback_is_rejected(self, client, analyst, project):
        res = client.post(
            f"/test-cases?project_id={project.id}", json=[{"name": "", "description": 7}],
            headers=analyst,
        )
        assert res.status_code == 400
        assert res.get_json()["error"] == "item 0: description must be a string"

    def test_database_error_mid_batch_discards_flushed_rows(self, project):
        attempted = []

        def _fail_third_insert(mapper, connection, target):
            attempted.append(target.name)
            if len(attempted) == 3:
                raise OperationalError("INSERT INTO test_cases", {}, Exception("disk I/O error"))

        event.listen(CaseModel, "before_insert", _fail_third_insert)
        try:
            with pytest.raises(OperationalError):
                testing_service.create_test_cases_batch(
                    project.id, [{"name": f"case {i}"} for i in range(4)],
                )
        finally:
            event.remove(CaseModel, "before_insert", _fail_third_insert)

        assert attempted == ["case 0", "case 1", "case 2"]
        assert CaseModel.query.count() == 0
        assert _db.session.get(Project, project.id) is not None

    def test_out_of_range_project_id(self, client, analyst):
        res = client.post(
            "/test-cases?project_id=99999999999999999999", json=[{"name": "x"}], headers=analyst,
        )
        assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# REQUIREMENT LINKS
# ═════════════════════════════════════════════════════════════════════════════

class TestRequirementLinks:
    def test_add_and_remove(self, client, analyst, project, requirement):
        tc = _case(project)
        url = f"/test-case/add-requirement?test_case_id={tc.id}&requirement_id={requirement.id}"
        assert client.post(url, headers=analyst).status_code == 204
        data = client.get(f"/test-case?id={tc.id}", headers=analyst).get_json()
        assert data["requirement_ids"] == [requirement.id]

        res = client.post(
            "/test-case/remove-requirement",
            json={"test_case_id": tc.id, "requirement_id": requirement.id},
            headers=analyst,
        )
        assert res.status_code == 204
        data = client.get(f"/test-case?id={tc.id}", headers=analyst).get_json()
        assert data["requirement_ids"] == []

    def test_add_is_idempotent(self, client, analyst, project, requirement):
        tc = _case(project)
        url = f"/test-case/add-requirement?test_case_id={tc.id}&requirement_id={requirement.id}"
        assert client.post(url, headers=analyst).status_code == 204
        assert client.post(url, headers=analyst).status_code == 204
        _db.session.refresh(tc)
        assert len(tc.requirements) == 1

    def test_add_unknown_requirement(self, client, analyst, project):
        tc = _case(project)
        res = client.post(
            f"/test-case/add-requirement?test_case_id={tc.id}&requirement_id={uuid.uuid4()}",
            headers=analyst,
        )
        assert res.status_code == 404

    def test_add_rejects_malformed_uuid(self, client, analyst, project):
        tc = _case(project)
        res = client.post(
            f"/test-case/add-requirement?test_case_id={tc.id}&requirement_id=REQ-1",
            headers=analyst,
        )
        assert res.status_code == 400

    def test_reader_cannot_link(self, client, auth_headers, project, requirement):
        tc = _case(project)
        res = client.post(
            f"/test-case/add-requirement?test_case_id={tc.id}&requirement_id={requirement.id}",
            headers=auth_headers(ROLE_READER),
        )
        assert res.status_code == 403


# ═════════════════════════════════════════════════════════════════════════════
# TEST SUITES
# ═════════════════════════════════════════════════════════════════════════════

class TestTestSuites:
    def test_crud_and_membership(self, client, manager, project):
        res = client.post("/test-suite", json={
            "project_id": project.id, "name": "Smoke", "description": "fast checks",
        }, headers=manager)
        assert res.status_code == 201
        suite_id = res.get_json()["id"]

        tc1, tc2 = _case(project, "a"), _case(project, "b")
        for tc in (tc2, tc1):
            res = client.post(
                f"/test-suite/add-test-case?test_suite_id={suite_id}&test_case_id={tc.id}",
                headers=manager,
            )
            assert res.status_code == 204

        data = client.get(f"/test-suite?id={suite_id}", headers=manager).get_json()
        assert data["name"] == "Smoke"
        assert data["test_case_ids"] == [tc1.id, tc2.id]

        res = client.post(
            "/test-suite/remove-test-case",
            json={"test_suite_id": suite_id, "test_case_id": tc1.id},
            headers=manager,
        )
        assert res.status_code == 204
        data = client.get(f"/test-suite?id={suite_id}", headers=manager).get_json()
        assert data["test_case_ids"] == [tc2.id]

        listed = client.get(f"/test-suites?project_id={project.id}", headers=manager).get_json()
        assert [s["id"] for s in listed] == [suite_id]

        assert client.post(
            f"/test-suite/set-description?id={suite_id}", json={"description": "slow"},
            headers=manager,
        ).status_code == 204
        assert _db.session.get(SuiteModel, suite_id).description == "slow"

        assert client.delete(f"/test-suite?id={suite_id}", headers=manager).status_code == 204
        assert _db.session.get(SuiteModel, suite_id) is None
        # the cases survive their suite
        assert CaseModel.query.count() == 2

    def test_add_case_from_other_project(self, client, manager, project):
        other = Project(name="Other", responsible_name="Bob")
        _db.session.add(other)
        _db.session.commit()
        suite = SuiteModel(project_id=project.id, name="s")
        _db.session.add(suite)
        _db.session.commit()
        foreign = _case(other)
        res = client.post(
            f"/test-suite/add-test-case?test_suite_id={suite.id}&test_case_id={foreign.id}",
            headers=manager,
        )
        assert res.status_code == 400

    def test_suite_mutations_need_manager(self, client, analyst, project):
        res = client.post(
            "/test-suite", json={"project_id": project.id, "name": "s"}, headers=analyst,
        )
        assert res.status_code == 403

    def test_list_unknown_project(self, client, manager):
        assert client.get("/test-suites?project_id=42", headers=manager).status_code == 404

    def test_rejects_non_string_description(self, client, manager, project):
        res = client.post("/test-suite", json={
            "project_id": project.id, "name": "s", "description": ["x"],
        }, headers=manager)
        assert res.status_code == 400
        assert SuiteModel.query.count() == 0


# ═════════════════════════════════════════════════════════════════════════════
# TEST PLANS
# ═════════════════════════════════════════════════════════════════════════════

class TestTestPlans:
    def test_create_get_list_delete(self, client, manager, project):
        res = client.post("/test-plan", json={
            "project_id": project.id, "name": "Release 1",
            "goal": "ship", "deadline": "2031-06-30",
        }, headers=manager)
        assert res.status_code == 201
        plan_id = res.get_json()["id"]

        data = client.get(f"/test-plan?id={plan_id}", headers=manager).get_json()
        assert data["goal"] == "ship"
        assert data["deadline"] == "2031-06-30"

        assert [p["id"] for p in client.get("/test-plans", headers=manager).get_json()] == [plan_id]

        assert client.post(
            "/test-plan/set-description", json={"id": plan_id, "description": "d"},
            headers=manager,
        ).status_code == 204

        assert client.delete(f"/test-plan?id={plan_id}", headers=manager).status_code == 204
        assert client.get(f"/test-plan?id={plan_id}", headers=manager).status_code == 404

    def test_bad_deadline(self, client, manager, project):
        res = client.post("/test-plan", json={
            "project_id": project.id, "name": "R", "deadline": "next friday",
        }, headers=manager)
        assert res.status_code == 400

    def test_rejects_non_string_goal_and_description(self, client, manager, project):
        for field in ("goal", "description"):
            res = client.post("/test-plan", json={
                "project_id": project.id, "name": "R", field: {"text": "ship"},
            }, headers=manager)
            assert res.status_code == 400
            assert res.get_json()["error"] == f"{field} must be a string"
        assert PlanModel.query.count() == 0

    def test_deleting_plan_keeps_reports(self, client, manager, project):
        plan = PlanModel(project_id=project.id, name="R1")
        _db.session.add(plan)
        _db.session.flush()
        report = ReportModel(project_id=project.id, test_plan_id=plan.id, total_tests=0)
        _db.session.add(report)
        _db.session.commit()
        report_id = report.id

        assert client.delete(f"/test-plan?id={plan.id}", headers=manager).status_code == 204
        _db.session.expire_all()
        kept = _db.session.get(ReportModel, report_id)
        assert kept is not None
        assert kept.test_plan_id is None


# ═════════════════════════════════════════════════════════════════════════════
# TEST REPORTS
# ═════════════════════════════════════════════════════════════════════════════

class TestTestReports:
    def test_list_and_get(self, client, auth_headers, project):
        r1 = ReportModel(project_id=project.id, passed_tests=1, total_tests=2, duration=3)
        r2 = ReportModel(project_id=project.id, passed_tests=2, total_tests=2, duration=1)
        _db.session.add_all([r1, r2])
        _db.session.commit()
        reader = auth_headers(ROLE_READER)

        listed = client.get(f"/test-reports?project_id={project.id}", headers=reader).get_json()
        assert [r["id"] for r in listed] == [r2.id, r1.id]

        data = client.get(f"/test-report?id={r1.id}", headers=reader).get_json()
        assert data["passed_tests"] == 1
        assert data["total_tests"] == 2
        assert data["duration"] == 3

    def test_missing_report(self, client, manager):
        assert client.get("/test-report?id=5", headers=manager).status_code == 404
