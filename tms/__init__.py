"""
TMS Backend
Flask Application Factory.

Usage:
    from tms import create_app
    app = create_app()           # defaults to APP_ENV, else "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from sqlalchemy import engine as _sa_engine, event as _sa_event

from tms.config import config
from tms.core.exceptions import IntegrationError, NotFoundError, ValidationError
from tms.middleware.logging_config import configure_logging
from tms.middleware.timing import init_request_timing
from tms.models import db

__version__ = "1.0.0"

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Import all models so create_all sees them ────────────────────────
    from tms.models import auth as _auth_models               # noqa: F401
    from tms.models import project as _project_models         # noqa: F401
    from tms.models import requirement as _requirement_models  # noqa: F401
    from tms.models import testing as _testing_models         # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    db_uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if db_uri.startswith("sqlite:///") and ":memory:" not in db_uri:
        os.makedirs(app.instance_path, exist_ok=True)

    with app.app_context():
        db.create_all()
        app.logger.info("db.create_all() completed successfully")

        if app.config.get("SEED_ADMIN_ON_STARTUP"):
            from tms.services.user_service import seed_admin
            if seed_admin(app.config["SEED_ADMIN_USERNAME"], app.config["SEED_ADMIN_PASSWORD"]):
                app.logger.info("Seeded default account %s", app.config["SEED_ADMIN_USERNAME"])

    # ── Register Blueprints ──────────────────────────────────────────────
    from tms.blueprints.auth_bp import auth_bp
    from tms.blueprints.projects_bp import projects_bp
    from tms.blueprints.requirements_bp import requirements_bp
    from tms.blueprints.testing_bp import testing_bp
    from tms.blueprints.users_bp import users_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(testing_bp)
    app.register_blueprint(requirements_bp)
    app.register_blueprint(users_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    from tms.cli import register_cli
    register_cli(app)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        logger.info("Not found: %s id=%s", e.resource, e.resource_id)
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        body = {"error": str(e)}
        if e.details:
            body["details"] = e.details
        return jsonify(body), 400

    @app.errorhandler(IntegrationError)
    def handle_integration(e):
        logger.error("Rodik integration failure: %s (upstream status=%s)", e, e.status_code)
        return jsonify({"error": "Integration request failed", "detail": str(e)}), 500

    @app.errorhandler(404)
    def not_found(e):
        from flask import request
        return jsonify({"error": "Not found", "path": request.path}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return jsonify({"error": "Internal server error"}), 500

    logger.info("TMS backend started env=%s integration=%s",
                config_name, app.config.get("INTEGRATION_ENABLED"))
    return app
