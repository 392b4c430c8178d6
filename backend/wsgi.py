"""WSGI entry point: ``gunicorn -c gunicorn.conf.py`` from the ``backend`` directory."""

from accounts import create_app

app = create_app()
