"""
WebhookEvent model for gateway webhook delivery tracking.

Every delivery that passes signature verification is stored with its
processing outcome. The webhook endpoint always acknowledges the gateway,
so this table is where failed deliveries are found for follow-up.

Usage:
    event = WebhookEvent.objects.create(
        event_type="PAYMENT_SUCCESS_WEBHOOK",
        gateway_order_id="order_1729230000000_12_a1b2c3",
        payload=payload,
    )
    ...
    event.mark_processed()
    event.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Audit record for one webhook delivery.

    Fields:
        event_type: Gateway event type (e.g. PAYMENT_SUCCESS_WEBHOOK)
        gateway_order_id: Order id extracted from the payload
        gateway_payment_id: Payment attempt id extracted from the payload
        payload: Full JSON payload
        status: Processing outcome
        processed_at: When processing finished (any outcome)
        error_message: Error details if processing failed
        signature_verified: False only when verification is switched off

    Note:
        No uniqueness on the payload: the gateway may redeliver, and
        reconciliation is idempotent, so every delivery is recorded.
    """

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Gateway event type",
    )

    gateway_order_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        db_index=True,
    )

    gateway_payment_id = models.CharField(max_length=64, blank=True, default="")

    payload = models.JSONField(help_text="Full webhook payload (JSON)")

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
        help_text="Current processing status",
    )

    signature_verified = models.BooleanField(
        default=False,
        help_text="Whether the delivery passed HMAC verification",
    )

    processed_at = models.DateTimeField(null=True, blank=True)

    error_message = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"], name="webhook_status_created_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.event_type}, {self.gateway_order_id or '-'}, {self.status})"

    # ==========================================================================
    # Status Helpers (do not save - caller must save)
    # ==========================================================================

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_ignored(self) -> None:
        self.status = WebhookEventStatus.IGNORED
        self.processed_at = timezone.now()

    def mark_failed(self, error_message: str) -> None:
        """
        Mark event as failed with error message.

        Args:
            error_message: Description of what went wrong
        """
        self.status = WebhookEventStatus.FAILED
        self.processed_at = timezone.now()
        self.error_message = error_message

    # ==========================================================================
    # Payload Accessors
    # ==========================================================================

    # Payloads are untrusted JSON: a level that is not an object reads as empty.

    @property
    def data(self) -> dict:
        return _as_dict(self.payload, "data")

    def get_order_id(self) -> str | None:
        """Extract data.order.order_id from the payload."""
        order_id = _as_dict(self.data, "order").get("order_id")
        if isinstance(order_id, (str, int)) and not isinstance(order_id, bool):
            return str(order_id) or None
        return None

    def get_payment(self) -> dict:
        """Extract data.payment from the payload."""
        return _as_dict(self.data, "payment")


def _as_dict(container, key: str) -> dict:
    if not isinstance(container, dict):
        return {}
    value = container.get(key)
    return value if isinstance(value, dict) else {}
