"""
Tests for GatewayConfig.
"""

import pytest
from django.core.exceptions import ImproperlyConfigured
from django.test import override_settings

from payments.conf import GatewayConfig


class TestGatewayConfig:
    def test_sandbox_base_url_by_default(self):
        config = GatewayConfig(app_id="id", secret_key="secret")

        assert config.base_url == "https://sandbox.cashfree.com/pg"

    def test_production_base_url(self):
        config = GatewayConfig(app_id="id", secret_key="secret", environment="PRODUCTION")

        assert config.base_url == "https://api.cashfree.com/pg"

    @pytest.mark.parametrize("app_id, secret_key", [("", "secret"), ("id", ""), ("", "")])
    def test_missing_credentials(self, app_id, secret_key):
        with pytest.raises(ImproperlyConfigured):
            GatewayConfig(app_id=app_id, secret_key=secret_key)

    def test_unknown_environment(self):
        with pytest.raises(ImproperlyConfigured):
            GatewayConfig(app_id="id", secret_key="secret", environment="STAGING")

    def test_non_positive_timeout(self):
        with pytest.raises(ImproperlyConfigured):
            GatewayConfig(app_id="id", secret_key="secret", timeout_seconds=0)

    def test_signing_secret_falls_back_to_secret_key(self):
        assert GatewayConfig(app_id="id", secret_key="secret").signing_secret == "secret"
        assert GatewayConfig(app_id="id", secret_key="secret", webhook_secret="whsec").signing_secret == "whsec"


class TestFromSettings:
    @override_settings(
        CASHFREE_APP_ID="app",
        CASHFREE_SECRET_KEY="key",
        CASHFREE_ENV="production",
        CASHFREE_API_TIMEOUT_SECONDS=5,
        CASHFREE_MAX_RETRIES=0,
        CASHFREE_VERIFY_WEBHOOK_SIGNATURE=False,
    )
    def test_reads_settings(self):
        config = GatewayConfig.from_settings()

        assert config.app_id == "app"
        assert config.environment == "PRODUCTION"
        assert config.timeout_seconds == 5.0
        assert config.max_retries == 0
        assert config.verify_webhook_signature is False

    @override_settings(CASHFREE_APP_ID="")
    def test_missing_app_id_fails(self):
        with pytest.raises(ImproperlyConfigured):
            GatewayConfig.from_settings()
