"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, api_client):
        response = api_client.post(reverse("authentication:token-obtain"), {...})
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create an active applicant with a known password."""
    return UserFactory(email="applicant@example.com")


@pytest.fixture
def inactive_user(db):
    return UserFactory(email="inactive@example.com", is_active=False)


@pytest.fixture
def api_client():
    return APIClient()
