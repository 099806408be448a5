"""
Root pytest configuration for the Django project.

Provides environment defaults so the test suite runs without a .env file:
an in-memory SQLite database and a throwaway secret key. Point
DATABASE_URL at PostgreSQL to run the concurrency tests.

Django itself is set up in app/conftest.py.
"""

import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("SECURE_SSL_REDIRECT", "False")
