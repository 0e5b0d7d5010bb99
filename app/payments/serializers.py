"""
DRF serializers for payments app.

This module provides serializers for:
- Payment initiation, verification and refund requests
- Payment read representation (status, history)
- Initiation and verification responses

Related files:
    - views.py: Payment API views
    - services/: Business logic behind each endpoint
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import Payment
from payments.state_machines import PaymentStatus, PaymentType


class PaymentSerializer(serializers.ModelSerializer):
    """
    Payment read serializer.

    Used by the status, history, verify and refund endpoints.
    """

    order_id = serializers.CharField(source="gateway_order_id", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "order_id",
            "payment_session_id",
            "gateway_payment_id",
            "amount",
            "currency",
            "type",
            "status",
            "receipt",
            "notes",
            "loan_application",
            "failure_reason",
            "paid_at",
            "refund_id",
            "refund_amount",
            "refund_reason",
            "refunded_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InitiatePaymentSerializer(serializers.Serializer):
    """
    Payment initiation request.

    Request body:
        {
            "type": "MEMBERSHIP",
            "amount": "299.00",              // Optional, overrides the configured price
            "currency": "INR",               // Optional
            "receipt": "receipt_...",        // Optional
            "notes": {"membership_type": "yearly"},
            "loan_application_id": 42        // Required for LOAN_FEE / DOCUMENT_FEE
        }

    The type is validated by the intent builder so that an unknown type
    yields INVALID_PAYMENT_TYPE rather than a generic field error.
    """

    type = serializers.CharField(max_length=20)
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True, min_value=0
    )
    currency = serializers.CharField(max_length=3, required=False, default="INR")
    receipt = serializers.CharField(max_length=64, required=False, allow_blank=True)
    notes = serializers.DictField(required=False, default=dict)
    loan_application_id = serializers.IntegerField(required=False, allow_null=True)

    def validate_type(self, value):
        return value.strip().upper()

    def validate_currency(self, value):
        return value.upper()


class InitiatePaymentResponseSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    payment_session_id = serializers.CharField()
    order_status = serializers.CharField()
    payment = PaymentSerializer()


class VerifyPaymentSerializer(serializers.Serializer):
    """
    Client verification request after checkout.

    Accepts the order id as order_id or gateway_order_id.
    """

    order_id = serializers.CharField(max_length=64, required=False)
    gateway_order_id = serializers.CharField(max_length=64, required=False)
    gateway_payment_id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    reported_status = serializers.CharField(max_length=32, required=False, allow_blank=True)

    def validate(self, attrs):
        order_id = attrs.get("order_id") or attrs.get("gateway_order_id")
        if not order_id:
            raise serializers.ValidationError({"order_id": ["This field is required."]})
        attrs["order_id"] = order_id
        return attrs


class VerifyPaymentResponseSerializer(serializers.Serializer):
    outcome = serializers.CharField()
    payment = PaymentSerializer()


class RefundPaymentSerializer(serializers.Serializer):
    """Refund request: omit amount for a full refund."""

    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class PaymentHistoryQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)
    type = serializers.ChoiceField(choices=PaymentType.choices, required=False)
    mobile = serializers.CharField(required=False, max_length=20)
