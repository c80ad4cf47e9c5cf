# backend/wsgi.py
"""
WSGI entrypoint for the retail back office.

Falls back to dev settings; deployments set
DJANGO_SETTINGS_MODULE=backend.settings.prod (Postgres row locks required).
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_wsgi_application()
