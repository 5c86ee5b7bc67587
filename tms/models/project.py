"""Project model — the root every test artefact hangs off."""

from datetime import date, datetime, timedelta, timezone

from tms.models import db

# New projects are due two weeks after creation unless told otherwise
DEFAULT_COMPLETION_DAYS = 14

PROJECT_STATUSES = {"active", "completed", "on_hold"}


def _default_completion_date():
    return date.today() + timedelta(days=DEFAULT_COMPLETION_DAYS)


class Project(db.Model):
    """A body of testing work, optionally mirrored by a Rodik project."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    rodik_project_id = db.Column(
        db.String(36), nullable=True,
        comment="UUID of the matching project in Rodik (integration mode)",
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    responsible_name = db.Column(db.String(200), nullable=False)
    status = db.Column(db.String(50), nullable=False, default="active")
    completion_date = db.Column(db.Date, nullable=True, default=_default_completion_date)
    is_archived = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # ── Owned test artefacts (hard delete cascades) ──
    test_cases = db.relationship(
        "TestCase", backref="project", lazy="dynamic",
        cascade="all, delete-orphan",
    )
    test_plans = db.relationship(
        "TestPlan", backref="project", lazy="dynamic",
        cascade="all, delete-orphan",
    )
    test_suites = db.relationship(
        "TestSuite", backref="project", lazy="dynamic",
        cascade="all, delete-orphan",
    )
    test_reports = db.relationship(
        "TestReport", backref="project", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        """Serialize core project fields for API responses."""
        return {
            "id": self.id,
            "rodik_project_id": self.rodik_project_id,
            "name": self.name,
            "description": self.description,
            "responsible_name": self.responsible_name,
            "status": self.status,
            "completion_date": self.completion_date.isoformat() if self.completion_date else None,
            "is_archived": self.is_archived,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Project {self.id}: {self.name}>"
