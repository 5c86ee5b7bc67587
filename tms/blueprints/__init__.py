"""
TMS Backend
Blueprint registry and request-parameter helpers.

Identifiers may arrive in the query string (``?id=3``) or in the JSON
body (``{"id": 3}``); the query string wins. Malformed or missing values
raise ValidationError, which the app turns into a 400.
"""

from flask import request

from tms.core.exceptions import ValidationError
from tms.utils.helpers import parse_uuid

# Serial keys are 64-bit signed on PostgreSQL and SQLite alike
MAX_DB_INT = 2**63 - 1


def json_body() -> dict:
    """Request JSON as a dict; anything else (absent, array, scalar) gives {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _raw_param(name):
    value = request.args.get(name)
    if value is None or value == "":
        value = json_body().get(name)
    if value == "":
        value = None
    return value


def int_param(name: str, required: bool = True) -> int | None:
    value = _raw_param(name)
    if value is None:
        if required:
            raise ValidationError(f"Missing {name}")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {name}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}")
    if not 0 < number <= MAX_DB_INT:
        raise ValidationError(f"Invalid {name}")
    return number


def uuid_param(name: str, required: bool = True) -> str | None:
    value = _raw_param(name)
    if value is None:
        if required:
            raise ValidationError(f"Missing {name}")
        return None
    try:
        return parse_uuid(value)
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"Invalid {name}")


def bool_param(name: str) -> bool | None:
    """Query-string flag: true/1/yes → True, false/0/no → False, absent → None."""
    value = request.args.get(name)
    if value is None or value == "":
        return None
    lowered = value.lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError(f"Invalid {name}")
