# backend/settings/__init__.py
"""
Settings package.

Nothing is imported here; DJANGO_SETTINGS_MODULE selects the module:
- backend.settings.dev   (local development, SQLite allowed)
- backend.settings.prod  (Postgres only)
"""
