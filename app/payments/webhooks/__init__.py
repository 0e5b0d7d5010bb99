"""
Webhook handling for payment events from Cashfree.

Deliveries are verified, recorded as WebhookEvent rows and reconciled
inline. The gateway always receives 200 for authentic deliveries.

Usage:
    # In urls.py
    from payments.webhooks.views import cashfree_webhook

    urlpatterns = [
        path("webhooks/cashfree/", cashfree_webhook, name="cashfree_webhook"),
    ]
"""

from payments.webhooks.handlers import dispatch_webhook, process_webhook_event, register_handler
from payments.webhooks.views import cashfree_webhook

__all__ = [
    "cashfree_webhook",
    "dispatch_webhook",
    "process_webhook_event",
    "register_handler",
]
