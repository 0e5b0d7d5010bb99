"""
Webhook event handlers for Cashfree events.

This module provides a handler registry and the handler for payment
success deliveries. Handlers return a ServiceResult instead of raising:
the webhook endpoint acknowledges every authentic delivery, and the
outcome is recorded on the WebhookEvent row.

Usage:
    from payments.webhooks.handlers import process_webhook_event, register_handler

    @register_handler("REFUND_STATUS_WEBHOOK")
    def handle_refund_status(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    process_webhook_event(webhook_event)  # marks and saves the event
"""

from __future__ import annotations

import logging
from typing import Callable

from core.exceptions import BaseApplicationError
from core.services import ServiceResult

from payments.models import WebhookEvent
from payments.services import PaymentReconciler

logger = logging.getLogger(__name__)


PAYMENT_SUCCESS_WEBHOOK = "PAYMENT_SUCCESS_WEBHOOK"


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Args:
        event_type: The Cashfree event type (e.g., "PAYMENT_SUCCESS_WEBHOOK")
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult | None:
    """
    Dispatch a webhook event to its handler.

    Returns:
        The handler's ServiceResult, or None when no handler is registered
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)
    if handler is None:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"webhook_event_id": str(webhook_event.id)},
        )
        return None

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"webhook_event_id": str(webhook_event.id), "gateway_order_id": webhook_event.gateway_order_id},
    )
    return handler(webhook_event)


def process_webhook_event(webhook_event: WebhookEvent) -> WebhookEvent:
    """
    Run the handler for a stored event and record the outcome.

    Never raises: an unexpected handler error is logged with its traceback
    and stored on the event as failed.
    """
    try:
        result = dispatch_webhook(webhook_event)
    except Exception as e:
        logger.exception(
            "Webhook handler raised",
            extra={"webhook_event_id": str(webhook_event.id), "event_type": webhook_event.event_type},
        )
        webhook_event.mark_failed(f"{type(e).__name__}: {e}")
        webhook_event.save()
        return webhook_event

    if result is None:
        webhook_event.mark_ignored()
    elif result.success:
        webhook_event.mark_processed()
    else:
        logger.error(
            "Webhook processing failed",
            extra={
                "webhook_event_id": str(webhook_event.id),
                "error_code": result.error_code,
                "error": result.error,
            },
        )
        webhook_event.mark_failed(result.error or "Webhook processing failed")

    webhook_event.save()
    return webhook_event


# =============================================================================
# Payment Handlers
# =============================================================================


@register_handler(PAYMENT_SUCCESS_WEBHOOK)
def handle_payment_success(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Reconcile the payment named by a PAYMENT_SUCCESS_WEBHOOK delivery.

    Repeated deliveries and deliveries that arrive after the client's
    verify call are no-ops in the reconciler.
    """
    order_id = webhook_event.get_order_id()
    if not order_id:
        return ServiceResult.failure(
            "Webhook payload has no data.order.order_id",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    payment_data = webhook_event.get_payment()
    payment_status = payment_data.get("payment_status") or "SUCCESS"
    if not isinstance(payment_status, str):
        return ServiceResult.failure(
            "Webhook payload has a non-string data.payment.payment_status",
            error_code="INVALID_WEBHOOK_PAYLOAD",
        )

    cf_payment_id = payment_data.get("cf_payment_id")
    message = payment_data.get("payment_message")

    try:
        payment = PaymentReconciler().reconcile(
            order_id,
            payment_status,
            gateway_payment_id=str(cf_payment_id)[:64] if cf_payment_id is not None else None,
            message=message if isinstance(message, str) else None,
        )
    except BaseApplicationError as e:
        return ServiceResult.from_exception(e)

    return ServiceResult.success(payment)
