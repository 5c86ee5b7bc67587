"""Run-tests orchestration.

Sequence (one transaction):
    1. Resolve project, optional plan and suite (404 when missing).
    2. Select cases: the suite's cases, or every case of the project.
    3. Hand them to the configured TestRunner.
    4. Insert the TestReport.
    5. Commit. Any failure in 3–5 rolls back status changes and the report.
"""
import logging
import time

from tms.core.exceptions import ValidationError
from tms.models import db
from tms.models.testing import TestCase, TestReport
from tms.services.project_service import get_project
from tms.services.test_runner import get_runner
from tms.services.testing_service import get_test_plan, get_test_suite

logger = logging.getLogger(__name__)


def run_tests(project_id, test_plan_id=None, test_suite_id=None, runner=None) -> dict:
    """Run the selected test cases and record a report.

    Args:
        runner: a TestRunner instance; the configured one when omitted.

    Returns:
        {"id", "passed_tests", "total_tests", "results"}
    """
    project = get_project(project_id)

    plan = get_test_plan(test_plan_id) if test_plan_id is not None else None
    if plan is not None and plan.project_id != project.id:
        raise ValidationError("Test plan belongs to a different project")

    suite = get_test_suite(test_suite_id) if test_suite_id is not None else None
    if suite is not None and suite.project_id != project.id:
        raise ValidationError("Test suite belongs to a different project")

    if suite is not None:
        cases = list(suite.test_cases)
    else:
        cases = TestCase.query.filter_by(project_id=project.id).order_by(TestCase.id).all()

    runner = runner or get_runner()

    try:
        started = time.perf_counter()
        outcome = runner.run(cases)
        duration = int(round(time.perf_counter() - started))

        report = TestReport(
            project_id=project.id,
            test_plan_id=plan.id if plan else None,
            test_suite_id=suite.id if suite else None,
            runner=runner.name,
            passed_tests=outcome.passed,
            total_tests=outcome.total,
            duration=duration,
        )
        db.session.add(report)
        db.session.flush()
        report_id = report.id
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception(
            "Test run failed project=%s suite=%s runner=%s",
            project_id, test_suite_id, runner.name,
        )
        raise

    logger.info(
        "Test run recorded report=%s project=%s passed=%d/%d runner=%s",
        report_id, project_id, outcome.passed, outcome.total, runner.name,
    )
    return {
        "id": report_id,
        "passed_tests": outcome.passed,
        "total_tests": outcome.total,
        "results": outcome.results,
    }
