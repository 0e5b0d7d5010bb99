"""
Webhook endpoint view for Cashfree.

The view:
1. Verifies the webhook signature
2. Records a WebhookEvent for the delivery
3. Reconciles the payment inline
4. Acknowledges with 200 whatever the processing outcome

Only an unauthentic or unparseable delivery gets a 400. Processing
failures are recorded on the WebhookEvent and logged, not reported to
the gateway, which would otherwise keep redelivering.

Usage:
    # In urls.py
    from payments.webhooks.views import cashfree_webhook

    urlpatterns = [
        path("webhooks/cashfree/", cashfree_webhook, name="cashfree_webhook"),
    ]
"""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.adapters import CashfreeAdapter
from payments.conf import GatewayConfig
from payments.models import WebhookEvent
from payments.webhooks.handlers import process_webhook_event

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def cashfree_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and process Cashfree webhook deliveries.

    Security:
    - x-webhook-signature is base64(HMAC-SHA256(secret, timestamp + body))
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Returns:
        HttpResponse with status:
        - 200: Delivery accepted (processed, ignored or failed internally)
        - 400: Missing/invalid signature or invalid JSON
    """
    payload = request.body
    config = GatewayConfig.from_settings()

    if config.verify_webhook_signature:
        signature = request.headers.get("x-webhook-signature", "")
        timestamp = request.headers.get("x-webhook-timestamp", "")

        if not signature or not timestamp:
            logger.warning("Webhook received without signature headers")
            return HttpResponse("Missing signature", status=400)

        if not CashfreeAdapter(config).verify_webhook_signature(payload, signature, timestamp):
            logger.warning("Webhook signature verification failed")
            return HttpResponse("Invalid signature", status=400)

    try:
        event_data = json.loads(payload)
    except (TypeError, ValueError):
        logger.warning("Webhook body is not valid JSON")
        return HttpResponse("Invalid payload", status=400)

    event_type = event_data.get("type") if isinstance(event_data, dict) else None
    if not isinstance(event_type, str) or not event_type:
        logger.warning("Webhook missing event type")
        return HttpResponse("Invalid event", status=400)

    webhook_event = WebhookEvent(
        event_type=event_type[:100],
        payload=event_data,
        signature_verified=config.verify_webhook_signature,
    )
    webhook_event.gateway_order_id = (webhook_event.get_order_id() or "")[:64]
    cf_payment_id = webhook_event.get_payment().get("cf_payment_id")
    webhook_event.gateway_payment_id = "" if cf_payment_id is None else str(cf_payment_id)[:64]
    webhook_event.save()

    logger.info(
        f"Received Cashfree webhook: {webhook_event.event_type}",
        extra={
            "webhook_event_id": str(webhook_event.id),
            "gateway_order_id": webhook_event.gateway_order_id,
        },
    )

    process_webhook_event(webhook_event)

    return HttpResponse("OK", status=200)
