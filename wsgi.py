"""
WSGI / Flask-Migrate entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi seed-scope
    gunicorn wsgi:app
"""

from scopebid import create_app

app = create_app()
