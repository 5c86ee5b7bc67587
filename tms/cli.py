"""
Flask CLI commands.

    flask create-user USERNAME --password ... --name ... --role manager
    flask seed-admin
"""

import logging

import click

from tms.core.exceptions import ValidationError
from tms.models import db
from tms.models.auth import ROLES
from tms.services.user_service import create_user, seed_admin

logger = logging.getLogger(__name__)


def register_cli(app):
    """Attach the management commands to ``app.cli``."""

    @app.cli.command("create-user")
    @click.argument("username")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--name", default=None, help="Display name (defaults to USERNAME).")
    @click.option("--role", type=click.Choice(ROLES), default="reader", show_default=True)
    def create_user_cmd(username, password, name, role):
        """Create a user account."""
        try:
            user = create_user(username, password, name or username, role)
            db.session.commit()
        except ValidationError as e:
            db.session.rollback()
            raise click.ClickException(str(e))
        click.echo(f"Created user {user.username} (id={user.id}, role={user.role})")

    @app.cli.command("seed-admin")
    def seed_admin_cmd():
        """Create the default manager account if it does not exist."""
        username = app.config["SEED_ADMIN_USERNAME"]
        user = seed_admin(username, app.config["SEED_ADMIN_PASSWORD"])
        if user is None:
            click.echo(f"User {username} already exists")
        else:
            logger.info("Seeded default account %s", username)
            click.echo(f"Created user {username} (role={user.role})")
