"""
Tests for webhook handlers.

Tests cover:
- Handler registry and dispatch
- process_webhook_event outcome recording
- PAYMENT_SUCCESS_WEBHOOK reconciliation
"""

from unittest.mock import patch

import pytest

from memberships.models import Membership, MembershipStatus
from payments.models import Payment
from payments.state_machines import PaymentStatus, WebhookEventStatus
from payments.tests.factories import WebhookEventFactory
from payments.webhooks.handlers import (
    WEBHOOK_HANDLERS,
    PAYMENT_SUCCESS_WEBHOOK,
    dispatch_webhook,
    handle_payment_success,
    process_webhook_event,
)
from payments.webhooks.tests.payloads import success_payload


class TestRegistry:
    def test_payment_success_is_registered(self):
        assert WEBHOOK_HANDLERS[PAYMENT_SUCCESS_WEBHOOK] is handle_payment_success

    def test_unregistered_type_dispatches_to_nothing(self, db):
        event = WebhookEventFactory(event_type="REFUND_STATUS_WEBHOOK")

        assert dispatch_webhook(event) is None


class TestHandlePaymentSuccess:
    def test_reconciles_payment(self, membership_payment):
        event = WebhookEventFactory(
            gateway_order_id=membership_payment.gateway_order_id,
            payload=success_payload(membership_payment.gateway_order_id, cf_payment_id=42),
        )

        result = handle_payment_success(event)

        assert result.success
        payment = Payment.objects.get(pk=membership_payment.pk)
        assert payment.status == PaymentStatus.SUCCESS
        assert payment.gateway_payment_id == "42"
        assert Membership.objects.get(user=membership_payment.user).status == MembershipStatus.ACTIVE

    def test_payment_status_defaults_to_success(self, membership_payment):
        payload = success_payload(membership_payment.gateway_order_id)
        del payload["data"]["payment"]["payment_status"]
        event = WebhookEventFactory(payload=payload)

        handle_payment_success(event)

        assert Payment.objects.get(pk=membership_payment.pk).status == PaymentStatus.SUCCESS

    def test_failed_status_in_payload(self, membership_payment):
        payload = success_payload(membership_payment.gateway_order_id, payment_status="FAILED")
        payload["data"]["payment"]["payment_message"] = "Declined by bank"
        event = WebhookEventFactory(payload=payload)

        handle_payment_success(event)

        payment = Payment.objects.get(pk=membership_payment.pk)
        assert payment.status == PaymentStatus.FAILED
        assert payment.failure_reason == "Declined by bank"

    def test_missing_order_id(self, db):
        event = WebhookEventFactory(payload={"type": PAYMENT_SUCCESS_WEBHOOK, "data": {}})

        result = handle_payment_success(event)

        assert not result.success
        assert result.error_code == "INVALID_WEBHOOK_PAYLOAD"

    def test_unknown_order(self, db):
        event = WebhookEventFactory(payload=success_payload("order_unknown"))

        result = handle_payment_success(event)

        assert not result.success
        assert result.error_code == "PAYMENT_NOT_FOUND"


class TestProcessWebhookEvent:
    def test_marks_processed(self, membership_payment):
        event = WebhookEventFactory(payload=success_payload(membership_payment.gateway_order_id))

        process_webhook_event(event)

        event.refresh_from_db()
        assert event.status == WebhookEventStatus.PROCESSED
        assert event.processed_at is not None

    def test_marks_ignored_without_handler(self, db):
        event = WebhookEventFactory(event_type="REFUND_STATUS_WEBHOOK")

        process_webhook_event(event)

        event.refresh_from_db()
        assert event.status == WebhookEventStatus.IGNORED

    def test_marks_failed_on_handler_failure(self, db):
        event = WebhookEventFactory(payload=success_payload("order_unknown"))

        process_webhook_event(event)

        event.refresh_from_db()
        assert event.status == WebhookEventStatus.FAILED
        assert "order_unknown" in event.error_message

    def test_unexpected_error_is_recorded_not_raised(self, membership_payment):
        event = WebhookEventFactory(payload=success_payload(membership_payment.gateway_order_id))

        with patch(
            "payments.webhooks.handlers.PaymentReconciler.reconcile",
            side_effect=RuntimeError("database went away"),
        ):
            process_webhook_event(event)

        event.refresh_from_db()
        assert event.status == WebhookEventStatus.FAILED
        assert event.error_message == "RuntimeError: database went away"

    def test_redelivery_is_a_noop(self, membership_payment):
        payload = success_payload(membership_payment.gateway_order_id)
        first = WebhookEventFactory(payload=payload)
        second = WebhookEventFactory(payload=payload)

        process_webhook_event(first)
        process_webhook_event(second)

        second.refresh_from_db()
        assert second.status == WebhookEventStatus.PROCESSED
        assert Membership.objects.filter(user=membership_payment.user).count() == 1
