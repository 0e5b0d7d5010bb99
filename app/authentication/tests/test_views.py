"""
Tests for the JWT token endpoints.

Every payments endpoint except the webhook and the checkout return is
authenticated with these tokens.
"""

from django.urls import reverse
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from authentication.tests.factories import TEST_PASSWORD


class TestTokenObtain:
    url = reverse("authentication:token-obtain")

    def test_valid_credentials_return_token_pair(self, api_client, user):
        response = api_client.post(
            self.url, {"email": user.email, "password": TEST_PASSWORD}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert "refresh" in response.data
        token = AccessToken(response.data["access"])
        assert str(token["user_id"]) == str(user.pk)

    def test_wrong_password(self, api_client, user):
        response = api_client.post(
            self.url, {"email": user.email, "password": "wrong"}, format="json"
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_inactive_user_rejected(self, api_client, inactive_user):
        response = api_client.post(
            self.url, {"email": inactive_user.email, "password": TEST_PASSWORD}, format="json"
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestTokenRefresh:
    url = reverse("authentication:token-refresh")

    def test_refresh_returns_new_access_token(self, api_client, user):
        obtained = api_client.post(
            reverse("authentication:token-obtain"),
            {"email": user.email, "password": TEST_PASSWORD},
            format="json",
        )

        response = api_client.post(self.url, {"refresh": obtained.data["refresh"]}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert "access" in response.data

    def test_garbage_refresh_token(self, api_client, db):
        response = api_client.post(self.url, {"refresh": "not-a-token"}, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
