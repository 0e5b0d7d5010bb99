"""
Payments app configuration.

This app provides the payment lifecycle for the back office:
- Payment intents opened with Cashfree PG
- Reconciliation from client verification and gateway webhooks
- Membership and loan-fee side effects, reversed on refund
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        """Fail fast on missing or invalid gateway configuration."""
        from payments.conf import GatewayConfig

        GatewayConfig.from_settings()
