"""
Logging for the TMS backend.

Records emitted while a request is served carry a ``request`` block:
the request id, the authenticated username and the project the call
targets, plus method/path/status/duration on the timing middleware's
access line. ``RequestContextFilter`` fills the first two from ``flask.g``
so service-layer log calls get them without passing ``extra=``.

Output:
    production   one JSON object per line
    development  ``12:00:01 INFO    tms.x [req=ab12 user=alice project=3] msg``
LOG_LEVEL overrides the default level of either.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

REQUEST_FIELDS = (
    "request_id",
    "user",
    "project_id",
    "method",
    "path",
    "status",
    "duration_ms",
)

# (record attribute, tag) pairs shown in the bracket of a readable line
_READABLE_TAGS = (("request_id", "req"), ("user", "user"), ("project_id", "project"))

_QUIET_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine")


def request_fields(record: logging.LogRecord) -> dict:
    """The request-scoped attributes present on ``record``."""
    return {
        key: getattr(record, key)
        for key in REQUEST_FIELDS
        if getattr(record, key, None) is not None
    }


class RequestContextFilter(logging.Filter):
    """Stamp request id and username from ``flask.g`` onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            if getattr(record, "request_id", None) is None:
                record.request_id = g.get("request_id")
            if getattr(record, "user", None) is None:
                record.user = g.get("current_user")
        return True


class JSONFormatter(logging.Formatter):
    """``{"ts", "level", "logger", "msg", "request"?, "exc"?}`` per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        context = request_fields(record)
        if context:
            entry["request"] = context
        if record.exc_info and record.exc_info[0] is not None:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Single-line text for a terminal."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{ts} {record.levelname:<7} {record.name}"
        tags = " ".join(
            f"{tag}={getattr(record, attr)}"
            for attr, tag in _READABLE_TAGS
            if getattr(record, attr, None) is not None
        )
        if tags:
            line += f" [{tags}]"
        line += f": {record.getMessage()}"
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" ({duration:.0f}ms)"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Route all logging through one stderr handler with the request filter."""
    is_testing = app.config.get("TESTING", False)
    json_output = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if json_output else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else ReadableFormatter())
    handler.addFilter(RequestContextFilter())
    handler.setLevel(level)

    root = logging.getLogger()
    # create_app runs once per test session and per CLI call
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging ready level=%s output=%s",
                        level_name, "json" if json_output else "text")
