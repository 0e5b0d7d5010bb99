"""
Payment domain models.

- Payment: Central payment entity tracking the full payment lifecycle
- PaymentConfig: Price list for payment types and membership plans
- WebhookEvent: Audit record for gateway webhook deliveries
"""

from payments.models.payment import Payment
from payments.models.payment_config import PaymentConfig
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "Payment",
    "PaymentConfig",
    "WebhookEvent",
]
