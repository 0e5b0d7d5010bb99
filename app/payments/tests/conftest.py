"""
Pytest fixtures for payment tests.

This module provides fixtures for payments in each lifecycle state, a
gateway configuration with test credentials, and a mocked gateway so no
test reaches Cashfree.

Usage:
    def test_refund(success_payment, mock_gateway, mock_redis_lock):
        RefundService(gateway=mock_gateway, config=gateway_config).refund(success_payment.id)
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from loans.tests.factories import LoanApplicationFactory
from payments.adapters import (
    CashfreeAdapter,
    GatewayPayment,
    OrderResult,
    RefundResult,
)
from payments.conf import GatewayConfig
from payments.state_machines import PaymentStatus
from payments.tests.factories import PaymentConfigFactory, PaymentFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a test user."""
    return UserFactory(name="Asha Rao", mobile="9876543210")


@pytest.fixture
def other_user(db):
    return UserFactory()


@pytest.fixture
def staff_user(db):
    return UserFactory(is_staff=True)


@pytest.fixture
def loan_application(db, user):
    return LoanApplicationFactory(applicant=user)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def gateway_config():
    """Sandbox configuration with test credentials."""
    return GatewayConfig(
        app_id="TEST_APP_ID",
        secret_key="TEST_SECRET_KEY",
        return_url="https://api.example.com/api/v1/payments/return/",
        notify_url="https://api.example.com/api/v1/payments/webhooks/cashfree/",
    )


@pytest.fixture
def membership_config(db):
    return PaymentConfigFactory()


@pytest.fixture
def yearly_config(db):
    return PaymentConfigFactory(plan_type="yearly", amount=Decimal("2999.00"))


@pytest.fixture
def loan_fee_config(db):
    return PaymentConfigFactory(loan_fee=True)


@pytest.fixture
def document_fee_config(db):
    return PaymentConfigFactory(document_fee=True)


# =============================================================================
# Payment State Fixtures
# =============================================================================


@pytest.fixture
def created_payment(db, user):
    """CREATED monthly membership payment."""
    return PaymentFactory(user=user)


@pytest.fixture
def success_payment(db, user):
    """SUCCESS monthly membership payment."""
    return PaymentFactory(user=user, status=PaymentStatus.SUCCESS, gateway_payment_id="5114910576212")


@pytest.fixture
def failed_payment(db, user):
    return PaymentFactory(user=user, status=PaymentStatus.FAILED, failure_reason="Payment failed")


@pytest.fixture
def refunded_payment(db, user):
    return PaymentFactory(
        user=user,
        status=PaymentStatus.REFUNDED,
        refund_id="refund_1729230000000_abcdef123456",
        refund_amount=Decimal("299.00"),
    )


@pytest.fixture
def loan_fee_payment(db, user, loan_application):
    """CREATED LOAN_FEE payment for the user's application."""
    return PaymentFactory(user=user, loan_fee=True, loan_application=loan_application)


# =============================================================================
# Gateway Fixtures
# =============================================================================


@pytest.fixture
def mock_gateway():
    """
    MagicMock CashfreeAdapter with successful default responses.

    Override per test, e.g.:
        mock_gateway.fetch_payments_for_order.return_value = []
        mock_gateway.create_order.side_effect = GatewayUnavailableError("down")
    """
    gateway = MagicMock(spec=CashfreeAdapter)

    def _create_order(params):
        return OrderResult(
            order_id=params.order_id,
            cf_order_id="2149460581",
            payment_session_id=f"session_{params.order_id}",
            order_status="ACTIVE",
            amount=params.amount,
            currency=params.currency,
        )

    def _create_refund(params):
        return RefundResult(
            refund_id=params.refund_id,
            cf_refund_id="cf_refund_123",
            refund_status="PENDING",
            amount=params.amount,
        )

    gateway.create_order.side_effect = _create_order
    gateway.create_refund.side_effect = _create_refund
    gateway.fetch_payments_for_order.return_value = [
        GatewayPayment(
            cf_payment_id="5114910576212",
            payment_status="SUCCESS",
            payment_message="Transaction successful",
            amount=Decimal("299.00"),
            payment_time="2026-10-18T10:15:00+05:30",
        )
    ]
    return gateway


@pytest.fixture
def mock_redis_lock():
    """Mock Redis for distributed locking."""
    mock_redis = MagicMock()
    mock_redis.set.return_value = True
    mock_redis.eval.return_value = 1

    with patch("payments.locks.get_redis_connection", return_value=mock_redis):
        yield mock_redis


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create JWT-authenticated clients for any user.

    Usage:
        client = authenticated_client_factory(staff_user)
    """

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client


@pytest.fixture
def authenticated_client(user, authenticated_client_factory):
    return authenticated_client_factory(user)


@pytest.fixture
def staff_client(staff_user, authenticated_client_factory):
    return authenticated_client_factory(staff_user)
