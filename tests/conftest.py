"""
Shared pytest fixtures for the TMS backend test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user: factory for persisted users
    - auth_headers: factory for "Authorization: Bearer <jwt>" headers by role
    - project: Pre-created Project entity
    - integration_mode: flips INTEGRATION_ENABLED on for one test
"""

import functools

import pytest

from tms import create_app
from tms.models import db as _db
from tms.models.auth import ROLE_MANAGER, User
from tms.models.project import Project
from tms.services.jwt_service import generate_access_token
from tms.utils.crypto import hash_password

DEFAULT_PASSWORD = "s3cret-pass"
BYPASS_TOKEN = "test-bypass"


@functools.lru_cache(maxsize=None)
def _cached_hash(password):
    # bcrypt at 12 rounds is slow; tables are recreated per test
    return hash_password(password)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Auth fixtures ────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Factory: make_user("alice", role="tester") → persisted User."""
    def _make(username, role=ROLE_MANAGER, password=DEFAULT_PASSWORD, name=None):
        user = User(
            username=username,
            password_hash=_cached_hash(password),
            name=name or username.title(),
            role=role,
        )
        _db.session.add(user)
        _db.session.commit()
        return user
    return _make


@pytest.fixture()
def auth_headers():
    """Factory: auth_headers("manager") → {"Authorization": "Bearer ..."}."""
    def _headers(role, username=None, user_id=1):
        token = generate_access_token(user_id, username or f"{role}-user", role)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture()
def manager(auth_headers):
    return auth_headers(ROLE_MANAGER)


@pytest.fixture()
def bypass_headers(app):
    return {app.config["AUTH_BYPASS_HEADER"]: BYPASS_TOKEN}


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def project():
    """A persisted, unarchived project."""
    p = Project(name="Checkout", responsible_name="Alice", description="Payments flow")
    _db.session.add(p)
    _db.session.commit()
    return p


@pytest.fixture()
def integration_mode(app):
    """Run one test with INTEGRATION_ENABLED=True, then restore."""
    previous = app.config["INTEGRATION_ENABLED"]
    app.config["INTEGRATION_ENABLED"] = True
    yield
    app.config["INTEGRATION_ENABLED"] = previous
