"""
User Service — authentication, account creation, admin seeding.
"""

import logging

from tms.core.exceptions import ValidationError
from tms.models import db
from tms.models.auth import ROLE_MANAGER, ROLES, User
from tms.utils.crypto import hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when a username/password pair does not match a user."""


# ═══════════════════════════════════════════════════════════════
# Authentication
# ═══════════════════════════════════════════════════════════════
def authenticate_user(username: str, password: str) -> User:
    """Return the user on a correct password, raise AuthenticationError otherwise."""
    user = User.query.filter_by(username=username).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for username=%s", username)
        raise AuthenticationError("Invalid credentials")
    return user


# ═══════════════════════════════════════════════════════════════
# User CRUD
# ═══════════════════════════════════════════════════════════════
def list_users() -> list[User]:
    return User.query.order_by(User.id).all()


def create_user(username: str, password: str, name: str, role: str) -> User:
    """Create a user with a hashed password. Flushes, does not commit."""
    username = username.strip() if isinstance(username, str) else ""
    if not username:
        raise ValidationError("username is required")
    if not isinstance(password, str) or not password:
        raise ValidationError("password is required")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    if User.query.filter_by(username=username).first():
        raise ValidationError(f"User '{username}' already exists")

    user = User(
        username=username,
        password_hash=hash_password(password),
        name=name.strip(),
        role=role,
    )
    db.session.add(user)
    db.session.flush()
    logger.info("Created user id=%s username=%s role=%s", user.id, username, role)
    return user


def seed_admin(username: str, password: str) -> User | None:
    """Create the default manager account unless the username is taken.

    Returns the new user, or None when it already existed. Commits.
    """
    if User.query.filter_by(username=username).first():
        return None
    user = create_user(username, password, "Administrator", ROLE_MANAGER)
    db.session.commit()
    return user
