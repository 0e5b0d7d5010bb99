"""
Tests for the Cashfree webhook view.

Tests cover:
- Signature verification (missing, forged, disabled)
- Payload validation
- WebhookEvent recording for every authentic delivery
- Inline reconciliation and the 200 acknowledgement
"""

import json

import pytest
from django.test import override_settings

from loans.models import LoanApplication, LoanPaymentStatus
from payments.models import Payment, WebhookEvent
from payments.state_machines import PaymentStatus, WebhookEventStatus
from payments.webhooks.tests.payloads import WEBHOOK_PATH, success_payload
from payments.webhooks.views import cashfree_webhook


class TestSignatureVerification:
    def test_missing_signature_returns_400(self, rf, db):
        request = rf.post(
            WEBHOOK_PATH,
            data=json.dumps({"type": "PAYMENT_SUCCESS_WEBHOOK"}),
            content_type="application/json",
        )

        response = cashfree_webhook(request)

        assert response.status_code == 400
        assert b"Missing signature" in response.content
        assert not WebhookEvent.objects.exists()

    def test_missing_timestamp_returns_400(self, make_webhook_request, db):
        response = cashfree_webhook(make_webhook_request({"type": "X"}, signature="sig", timestamp=None))

        assert response.status_code == 400
        assert b"Missing signature" in response.content

    def test_forged_signature_returns_400(self, make_webhook_request, membership_payment):
        request = make_webhook_request(success_payload(membership_payment.gateway_order_id), signature="forged")

        response = cashfree_webhook(request)

        assert response.status_code == 400
        assert b"Invalid signature" in response.content
        assert not WebhookEvent.objects.exists()
        assert Payment.objects.get(pk=membership_payment.pk).status == PaymentStatus.CREATED

    @override_settings(CASHFREE_VERIFY_WEBHOOK_SIGNATURE=False)
    def test_verification_can_be_disabled(self, rf, membership_payment):
        request = rf.post(
            WEBHOOK_PATH,
            data=json.dumps(success_payload(membership_payment.gateway_order_id)),
            content_type="application/json",
        )

        response = cashfree_webhook(request)

        assert response.status_code == 200
        event = WebhookEvent.objects.get()
        assert event.signature_verified is False


class TestPayloadValidation:
    def test_invalid_json_returns_400(self, make_webhook_request, db):
        response = cashfree_webhook(make_webhook_request(b"not json"))

        assert response.status_code == 400
        assert b"Invalid payload" in response.content

    @pytest.mark.parametrize(
        "payload",
        [{"data": {}}, ["PAYMENT_SUCCESS_WEBHOOK"], {"type": ["PAYMENT_SUCCESS_WEBHOOK"]}, {"type": 7}],
    )
    def test_missing_event_type_returns_400(self, make_webhook_request, db, payload):
        response = cashfree_webhook(make_webhook_request(payload))

        assert response.status_code == 400
        assert b"Invalid event" in response.content

    def test_get_not_allowed(self, rf, db):
        response = cashfree_webhook(rf.get(WEBHOOK_PATH))

        assert response.status_code == 405


class TestWebhookProcessing:
    def test_success_reconciles_and_records_event(self, make_webhook_request, membership_payment):
        order_id = membership_payment.gateway_order_id

        response = cashfree_webhook(make_webhook_request(success_payload(order_id, cf_payment_id=99)))

        assert response.status_code == 200
        assert response.content == b"OK"
        payment = Payment.objects.get(pk=membership_payment.pk)
        assert payment.status == PaymentStatus.SUCCESS
        assert payment.gateway_payment_id == "99"

        event = WebhookEvent.objects.get()
        assert event.event_type == "PAYMENT_SUCCESS_WEBHOOK"
        assert event.gateway_order_id == order_id
        assert event.gateway_payment_id == "99"
        assert event.signature_verified is True
        assert event.status == WebhookEventStatus.PROCESSED

    def test_loan_fee_marked_paid(self, make_webhook_request, loan_fee_payment):
        cashfree_webhook(make_webhook_request(success_payload(loan_fee_payment.gateway_order_id)))

        application = LoanApplication.objects.get(pk=loan_fee_payment.loan_application_id)
        assert application.payment_status == LoanPaymentStatus.PAID

    def test_every_delivery_is_recorded(self, make_webhook_request, membership_payment):
        payload = success_payload(membership_payment.gateway_order_id)

        first = cashfree_webhook(make_webhook_request(payload))
        second = cashfree_webhook(make_webhook_request(payload))

        assert first.status_code == second.status_code == 200
        assert WebhookEvent.objects.count() == 2
        assert set(WebhookEvent.objects.values_list("status", flat=True)) == {WebhookEventStatus.PROCESSED}

    def test_unknown_order_still_acknowledged(self, make_webhook_request, db):
        response = cashfree_webhook(make_webhook_request(success_payload("order_unknown")))

        assert response.status_code == 200
        event = WebhookEvent.objects.get()
        assert event.status == WebhookEventStatus.FAILED

    def test_unhandled_event_type_ignored(self, make_webhook_request, db):
        response = cashfree_webhook(
            make_webhook_request({"type": "REFUND_STATUS_WEBHOOK", "data": {"refund": {"refund_id": "r1"}}})
        )

        assert response.status_code == 200
        assert WebhookEvent.objects.get().status == WebhookEventStatus.IGNORED


class TestMalformedAuthenticDeliveries:
    """Signed deliveries with a bad shape are acknowledged and recorded as failed."""

    @pytest.mark.parametrize(
        "data",
        [
            ["not", "a", "dict"],
            "order_1",
            {"order": "order_1"},
            {"order": ["order_1"]},
            {"order": {"order_id": {"id": "order_1"}}},
            {"order": {}, "payment": "SUCCESS"},
        ],
    )
    def test_bad_shape_is_recorded_and_acknowledged(self, make_webhook_request, db, data):
        response = cashfree_webhook(make_webhook_request({"type": "PAYMENT_SUCCESS_WEBHOOK", "data": data}))

        assert response.status_code == 200
        event = WebhookEvent.objects.get()
        assert event.status == WebhookEventStatus.FAILED
        assert event.gateway_order_id == ""
        assert "order_id" in event.error_message

    def test_payment_section_not_an_object(self, make_webhook_request, membership_payment):
        payload = success_payload(membership_payment.gateway_order_id)
        payload["data"]["payment"] = ["SUCCESS"]

        response = cashfree_webhook(make_webhook_request(payload))

        assert response.status_code == 200
        event = WebhookEvent.objects.get()
        assert event.gateway_order_id == membership_payment.gateway_order_id
        assert event.gateway_payment_id == ""
        # No payment section reads as a success delivery for the order
        assert event.status == WebhookEventStatus.PROCESSED

    def test_non_string_payment_status(self, make_webhook_request, membership_payment):
        payload = success_payload(membership_payment.gateway_order_id)
        payload["data"]["payment"]["payment_status"] = ["SUCCESS"]

        response = cashfree_webhook(make_webhook_request(payload))

        assert response.status_code == 200
        event = WebhookEvent.objects.get()
        assert event.status == WebhookEventStatus.FAILED
        assert "payment_status" in event.error_message
        assert Payment.objects.get(pk=membership_payment.pk).status == PaymentStatus.CREATED

    def test_numeric_order_id_is_read_as_text(self, make_webhook_request, db):
        response = cashfree_webhook(
            make_webhook_request({"type": "PAYMENT_SUCCESS_WEBHOOK", "data": {"order": {"order_id": 12345}}})
        )

        assert response.status_code == 200
        event = WebhookEvent.objects.get()
        assert event.gateway_order_id == "12345"
        assert event.status == WebhookEventStatus.FAILED
