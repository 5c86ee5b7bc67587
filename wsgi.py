"""
WSGI / Flask CLI entry point.

Usage:
    flask --app wsgi run
    flask --app wsgi seed-admin
    gunicorn wsgi:app
"""

from tms import create_app

app = create_app()
