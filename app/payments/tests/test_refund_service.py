"""
Tests for RefundService.

Covers:
1. Eligibility: only SUCCESS payments are refunded
2. Amount validation (full by default, partial, bounds)
3. Gateway call parameters and failure handling
4. Side effect reversal (membership cancelled, loan fee pending)
5. Distributed lock usage and contention
"""

from __future__ import annotations

import re
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest

from loans.models import LoanApplication, LoanPaymentStatus
from loans.tests.factories import LoanApplicationFactory
from memberships.models import Membership, MembershipStatus
from memberships.tests.factories import MembershipFactory
from payments.exceptions import (
    GatewayInvalidRequestError,
    GatewayRefundError,
    InvalidStateTransitionError,
    LockAcquisitionError,
    PaymentNotEligibleForRefundError,
    PaymentNotFoundError,
    PaymentValidationError,
)
from payments.models import Payment
from payments.services import RefundService
from payments.services.refund_service import DEFAULT_REFUND_REASON, generate_refund_id
from payments.state_machines import PaymentStatus
from payments.tests.factories import PaymentFactory


@pytest.fixture
def service(mock_gateway, gateway_config):
    return RefundService(gateway=mock_gateway, config=gateway_config)


class TestGenerateRefundId:
    def test_format(self):
        payment_id = uuid4()

        refund_id = generate_refund_id(payment_id)

        assert re.fullmatch(rf"refund_\d{{13}}_{payment_id.hex[:12]}", refund_id)


class TestRefundEligibility:
    @pytest.mark.parametrize(
        "status",
        [PaymentStatus.CREATED, PaymentStatus.FAILED, PaymentStatus.REFUNDED],
    )
    def test_only_success_is_refundable(self, service, mock_gateway, mock_redis_lock, db, status):
        payment = PaymentFactory(status=status)

        with pytest.raises(PaymentNotEligibleForRefundError) as exc_info:
            service.refund(payment.id)

        assert exc_info.value.http_status == 409
        mock_gateway.create_refund.assert_not_called()
        assert Payment.objects.get(pk=payment.pk).status == status

    def test_unknown_payment(self, service, mock_redis_lock, db):
        with pytest.raises(PaymentNotFoundError):
            service.refund(uuid4())


class TestRefundAmount:
    def test_defaults_to_full_amount(self, service, mock_gateway, mock_redis_lock, success_payment):
        payment = service.refund(success_payment.id)

        assert payment.refund_amount == Decimal("299.00")
        params = mock_gateway.create_refund.call_args.args[0]
        assert params.amount == Decimal("299.00")
        assert params.order_id == success_payment.gateway_order_id
        assert params.note == DEFAULT_REFUND_REASON
        assert params.refund_id.startswith("refund_")

    def test_partial_refund(self, service, mock_redis_lock, success_payment):
        payment = service.refund(success_payment.id, amount=Decimal("100.00"), reason="partial goodwill")

        assert payment.status == PaymentStatus.REFUNDED
        assert payment.refund_amount == Decimal("100.00")
        assert payment.refund_reason == "partial goodwill"

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00"), Decimal("299.01")])
    def test_out_of_range_amount_rejected(self, service, mock_gateway, mock_redis_lock, success_payment, amount):
        with pytest.raises(PaymentValidationError) as exc_info:
            service.refund(success_payment.id, amount=amount)

        assert exc_info.value.error_code == "INVALID_REFUND_AMOUNT"
        mock_gateway.create_refund.assert_not_called()
        assert Payment.objects.get(pk=success_payment.pk).status == PaymentStatus.SUCCESS


class TestRefundCompletion:
    def test_membership_refund_cancels_membership(self, service, mock_redis_lock, success_payment):
        MembershipFactory(user=success_payment.user)

        payment = service.refund(success_payment.id)

        assert payment.status == PaymentStatus.REFUNDED
        assert payment.refunded_at is not None
        stored = Payment.objects.get(pk=success_payment.pk)
        assert stored.status == PaymentStatus.REFUNDED
        assert stored.refund_id == payment.refund_id
        membership = Membership.objects.get(user=success_payment.user)
        assert membership.status == MembershipStatus.CANCELLED
        assert membership.is_active is False

    def test_loan_fee_refund_reverts_application(self, service, mock_redis_lock, db, user):
        application = LoanApplicationFactory(applicant=user, payment_status=LoanPaymentStatus.PAID)
        payment = PaymentFactory(
            user=user, loan_fee=True, loan_application=application, status=PaymentStatus.SUCCESS
        )

        service.refund(payment.id)

        application = LoanApplication.objects.get(pk=application.pk)
        assert application.payment_status == LoanPaymentStatus.PENDING

    def test_second_refund_rejected(self, service, mock_gateway, mock_redis_lock, success_payment):
        service.refund(success_payment.id)

        with pytest.raises(PaymentNotEligibleForRefundError):
            service.refund(success_payment.id)

        assert mock_gateway.create_refund.call_count == 1

    def test_row_moved_on_during_gateway_call(self, service, mock_gateway, mock_redis_lock, success_payment):
        original = mock_gateway.create_refund.side_effect

        def _refund_then_race(params):
            result = original(params)
            # Another path refunded the row while the gateway call was in flight
            Payment.objects.filter(pk=success_payment.pk).update(status=PaymentStatus.REFUNDED)
            return result

        mock_gateway.create_refund.side_effect = _refund_then_race

        with pytest.raises(InvalidStateTransitionError):
            service.refund(success_payment.id)


class TestRefundGatewayFailure:
    def test_gateway_error_leaves_payment_success(self, service, mock_gateway, mock_redis_lock, success_payment):
        MembershipFactory(user=success_payment.user)
        mock_gateway.create_refund.side_effect = GatewayInvalidRequestError(
            "Refund amount exceeds order amount", gateway_code="refund_amount_invalid"
        )

        with pytest.raises(GatewayRefundError) as exc_info:
            service.refund(success_payment.id)

        assert exc_info.value.message == "Refund amount exceeds order amount"
        assert exc_info.value.gateway_code == "refund_amount_invalid"
        assert Payment.objects.get(pk=success_payment.pk).status == PaymentStatus.SUCCESS
        assert Membership.objects.get(user=success_payment.user).status == MembershipStatus.ACTIVE


class TestRefundLocking:
    def test_lock_key_is_per_payment(self, service, mock_redis_lock, success_payment):
        service.refund(success_payment.id)

        key = mock_redis_lock.set.call_args.args[0]
        assert key == f"lock:payment:refund:{success_payment.id}"
        assert mock_redis_lock.set.call_args.kwargs["ex"] == 120
        mock_redis_lock.eval.assert_called_once()

    def test_contention_raises_without_gateway_call(self, service, mock_gateway, mock_redis_lock, success_payment):
        mock_redis_lock.set.return_value = False

        with patch("payments.services.refund_service.REFUND_LOCK_TIMEOUT", 0.01):
            with patch("payments.locks.DistributedLock.POLL_INTERVAL", 0.001):
                with pytest.raises(LockAcquisitionError):
                    service.refund(success_payment.id)

        mock_gateway.create_refund.assert_not_called()
