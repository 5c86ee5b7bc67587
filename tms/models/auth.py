"""
Auth Models — users and the closed role enumeration.

Passwords are stored as bcrypt hashes (see tms.utils.crypto); the API
never returns them.
"""

from datetime import datetime, timezone

from tms.models import db


# ── Roles ────────────────────────────────────────────────────────────────────

ROLE_MANAGER = "manager"
ROLE_TEST_ANALYST = "test-analyst"
ROLE_TESTER = "tester"
ROLE_ADMIN = "admin"
ROLE_READER = "reader"

ROLES = (ROLE_MANAGER, ROLE_TEST_ANALYST, ROLE_TESTER, ROLE_ADMIN, ROLE_READER)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(50), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.CheckConstraint(
            "role IN ({})".format(", ".join(f"'{r}'" for r in ROLES)),
            name="ck_users_role",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.username} ({self.role})>"
