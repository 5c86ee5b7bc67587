"""
TMS Backend
Testing domain models.

Models:
    - TestCase:    individual test case of a project, with a free-form JSON blob
    - TestSuite:   grouping of test cases (N:M via test_case_suites)
    - TestPlan:    goal + deadline container for a project
    - TestReport:  immutable outcome of one "run tests" call

Architecture ref:
    Project ──1:N──▶ TestCase ──N:M──▶ Requirement
    Project ──1:N──▶ TestSuite ──N:M──▶ TestCase
    Project ──1:N──▶ TestPlan
    Project ──1:N──▶ TestReport ──N:1──▶ TestPlan / TestSuite (nullable)
"""

from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import JSONB

from tms.models import db


# ── Constants ────────────────────────────────────────────────────────────

TEST_CASE_STATUSES = {"not_run", "passed", "failed"}

# Schemaless attributes; JSONB (GIN-indexable) on PostgreSQL, JSON elsewhere
JSONData = db.JSON().with_variant(JSONB(), "postgresql")


# ── Association tables ───────────────────────────────────────────────────

test_case_requirements = db.Table(
    "test_case_requirements",
    db.Column(
        "test_case_id", db.Integer,
        db.ForeignKey("test_cases.id", ondelete="CASCADE"), primary_key=True,
    ),
    db.Column(
        "requirement_id", db.String(36),
        db.ForeignKey("requirements.id", ondelete="CASCADE"), primary_key=True,
    ),
)

test_case_suites = db.Table(
    "test_case_suites",
    db.Column(
        "test_case_id", db.Integer,
        db.ForeignKey("test_cases.id", ondelete="CASCADE"), primary_key=True,
    ),
    db.Column(
        "test_suite_id", db.Integer,
        db.ForeignKey("test_suites.id", ondelete="CASCADE"), primary_key=True,
    ),
)


# ═════════════════════════════════════════════════════════════════════════════
# TEST CASE
# ═════════════════════════════════════════════════════════════════════════════

class TestCase(db.Model):
    """A single test case. Status is written by the test runner."""

    __tablename__ = "test_cases"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(50), nullable=False, default="not_run")
    json_data = db.Column(JSONData, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    requirements = db.relationship(
        "Requirement", secondary=test_case_requirements, lazy="select",
        backref=db.backref("test_cases", lazy="dynamic"),
    )

    __table_args__ = (
        db.Index("ix_test_cases_json_data", "json_data", postgresql_using="gin"),
    )

    def to_dict(self, include_links=False):
        result = {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "json_data": self.json_data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_links:
            result["requirement_ids"] = sorted(r.id for r in self.requirements)
            result["suite_ids"] = sorted(s.id for s in self.suites)
        return result

    def __repr__(self):
        return f"<TestCase {self.id}: {self.name} [{self.status}]>"


# ═════════════════════════════════════════════════════════════════════════════
# TEST SUITE
# ═════════════════════════════════════════════════════════════════════════════

class TestSuite(db.Model):
    """Named grouping of test cases; the unit "run tests" executes."""

    __tablename__ = "test_suites"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    test_cases = db.relationship(
        "TestCase", secondary=test_case_suites, lazy="select",
        order_by="TestCase.id",
        backref=db.backref("suites", lazy="select"),
    )
    reports = db.relationship("TestReport", backref="test_suite", lazy="dynamic")

    def to_dict(self, include_cases=False):
        result = {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_cases:
            result["test_case_ids"] = [tc.id for tc in self.test_cases]
        return result

    def __repr__(self):
        return f"<TestSuite {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
# TEST PLAN
# ═════════════════════════════════════════════════════════════════════════════

class TestPlan(db.Model):
    __tablename__ = "test_plans"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    goal = db.Column(db.Text, default="")
    deadline = db.Column(db.Date, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    reports = db.relationship("TestReport", backref="test_plan", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "goal": self.goal,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<TestPlan {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
# TEST REPORT
# ═════════════════════════════════════════════════════════════════════════════

class TestReport(db.Model):
    """
    Outcome of one "run tests" call. Written once, never updated.

    Deleting the plan or suite a report points at keeps the report and
    clears the reference.
    """

    __tablename__ = "test_reports"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    test_plan_id = db.Column(
        db.Integer, db.ForeignKey("test_plans.id", ondelete="SET NULL"), nullable=True,
    )
    test_suite_id = db.Column(
        db.Integer, db.ForeignKey("test_suites.id", ondelete="SET NULL"), nullable=True,
    )
    runner = db.Column(db.String(50), nullable=False, default="")
    passed_tests = db.Column(db.Integer, nullable=False, default=0)
    total_tests = db.Column(db.Integer, nullable=False, default=0)
    duration = db.Column(db.Integer, nullable=False, default=0, comment="seconds")
    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "test_plan_id": self.test_plan_id,
            "test_suite_id": self.test_suite_id,
            "runner": self.runner,
            "passed_tests": self.passed_tests,
            "total_tests": self.total_tests,
            "duration": self.duration,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<TestReport {self.id}: {self.passed_tests}/{self.total_tests}>"
