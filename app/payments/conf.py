"""
Gateway configuration for Cashfree PG.

Settings are read once into a frozen GatewayConfig and injected into the
adapter and the services that talk to the gateway. PaymentsConfig.ready()
builds it at startup, so a process with missing credentials fails before
serving its first request instead of on the first checkout.

Configuration (via settings):
- CASHFREE_APP_ID / CASHFREE_SECRET_KEY: API credentials (required)
- CASHFREE_ENV: SANDBOX or PRODUCTION (default: SANDBOX)
- CASHFREE_API_VERSION: x-api-version header (default: 2023-08-01)
- CASHFREE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- CASHFREE_MAX_RETRIES: Connection retries (default: 2)
- CASHFREE_RETURN_URL / CASHFREE_NOTIFY_URL: Checkout redirect and webhook URLs
- CASHFREE_WEBHOOK_SECRET: Signing secret (defaults to the secret key)
- CASHFREE_VERIFY_WEBHOOK_SIGNATURE: Reject unsigned webhooks (default: True)

Usage:
    from payments.conf import GatewayConfig

    config = GatewayConfig.from_settings()
    adapter = CashfreeAdapter(config)
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

SANDBOX = "SANDBOX"
PRODUCTION = "PRODUCTION"

BASE_URLS = {
    SANDBOX: "https://sandbox.cashfree.com/pg",
    PRODUCTION: "https://api.cashfree.com/pg",
}


@dataclass(frozen=True)
class GatewayConfig:
    """
    Immutable Cashfree configuration.

    Attributes:
        app_id: x-client-id header value
        secret_key: x-client-secret header value
        environment: SANDBOX or PRODUCTION
        api_version: x-api-version header value
        timeout_seconds: httpx timeout for every call
        max_retries: Connection-level retries (httpx transport)
        return_url: Where the hosted checkout sends the payer back to
        notify_url: Webhook URL registered on each order
        webhook_secret: Key for webhook HMAC verification
        verify_webhook_signature: Whether unsigned deliveries are rejected
    """

    app_id: str
    secret_key: str
    environment: str = SANDBOX
    api_version: str = "2023-08-01"
    timeout_seconds: float = 10.0
    max_retries: int = 2
    return_url: str = ""
    notify_url: str = ""
    webhook_secret: str = ""
    verify_webhook_signature: bool = True

    def __post_init__(self) -> None:
        if not self.app_id or not self.secret_key:
            raise ImproperlyConfigured(
                "CASHFREE_APP_ID and CASHFREE_SECRET_KEY must be set"
            )
        if self.environment not in BASE_URLS:
            raise ImproperlyConfigured(
                f"CASHFREE_ENV must be one of {sorted(BASE_URLS)}, got {self.environment!r}"
            )
        if self.timeout_seconds <= 0:
            raise ImproperlyConfigured("CASHFREE_API_TIMEOUT_SECONDS must be positive")

    @property
    def base_url(self) -> str:
        return BASE_URLS[self.environment]

    @property
    def signing_secret(self) -> str:
        return self.webhook_secret or self.secret_key

    @classmethod
    def from_settings(cls) -> GatewayConfig:
        """Build the configuration from Django settings."""
        return cls(
            app_id=getattr(settings, "CASHFREE_APP_ID", ""),
            secret_key=getattr(settings, "CASHFREE_SECRET_KEY", ""),
            environment=str(getattr(settings, "CASHFREE_ENV", SANDBOX)).upper(),
            api_version=getattr(settings, "CASHFREE_API_VERSION", "2023-08-01"),
            timeout_seconds=float(getattr(settings, "CASHFREE_API_TIMEOUT_SECONDS", 10)),
            max_retries=int(getattr(settings, "CASHFREE_MAX_RETRIES", 2)),
            return_url=getattr(settings, "CASHFREE_RETURN_URL", ""),
            notify_url=getattr(settings, "CASHFREE_NOTIFY_URL", ""),
            webhook_secret=getattr(settings, "CASHFREE_WEBHOOK_SECRET", ""),
            verify_webhook_signature=getattr(
                settings, "CASHFREE_VERIFY_WEBHOOK_SIGNATURE", True
            ),
        )
