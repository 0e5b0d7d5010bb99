"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.

Environment defaults below let the suite run without a .env file: SQLite
instead of PostgreSQL, and dummy sandbox credentials so the payments app
passes its startup configuration check.
"""

import os

import django
import pytest

# Must be set before Django settings are imported
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("DATABASE_URL", "sqlite:///test-db.sqlite3")
os.environ.setdefault("CASHFREE_APP_ID", "TEST_APP_ID")
os.environ.setdefault("CASHFREE_SECRET_KEY", "TEST_SECRET_KEY")
os.environ.setdefault("CASHFREE_ENV", "SANDBOX")
os.environ.setdefault("CASHFREE_RETURN_URL", "https://api.example.com/api/v1/payments/return/")
os.environ.setdefault("CASHFREE_NOTIFY_URL", "https://api.example.com/api/v1/payments/webhooks/cashfree/")
os.environ.setdefault("FRONTEND_URL", "https://app.example.com")
os.environ.setdefault("SECURE_SSL_REDIRECT", "False")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # No Redis in tests; distributed locks are patched per test
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    }

    # Manifest storage needs collectstatic; tests never serve static files
    settings.STORAGES = {
        **settings.STORAGES,
        "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
    }


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_views.py, test_*_service.py, test_reconciler.py, etc. → integration
    - test_models.py, test_intents.py, test_locks.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence (the
    end-to-end payment journeys are marked e2e that way).
    """
    # Filename patterns for each category
    integration_patterns = [
        "test_views.py",
        "test_handlers.py",
        "test_webhook_view.py",
        "test_intent_service.py",
        "test_reconciler.py",
        "test_refund_service.py",
        "test_effects.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_managers.py",
        "test_intents.py",
        "test_conf.py",
        "test_cashfree_adapter.py",
        "test_exceptions.py",
        "test_locks.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filepath = str(item.fspath)
        filename = filepath.split("/")[-1]

        # Check patterns in priority order
        if any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)
