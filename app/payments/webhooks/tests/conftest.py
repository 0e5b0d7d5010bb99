"""
Pytest fixtures for webhook tests.

Provides a request factory, signed Cashfree deliveries and payments for
the deliveries to reconcile.
"""

import json

import pytest
from django.test import RequestFactory

from authentication.tests.factories import UserFactory
from loans.tests.factories import LoanApplicationFactory
from payments.tests.factories import PaymentFactory
from payments.webhooks.tests.payloads import WEBHOOK_PATH, WEBHOOK_TIMESTAMP, sign


@pytest.fixture
def rf():
    """Request factory for creating test requests."""
    return RequestFactory()


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def membership_payment(db, user):
    """CREATED monthly membership payment."""
    return PaymentFactory(user=user)


@pytest.fixture
def loan_fee_payment(db, user):
    return PaymentFactory(user=user, loan_fee=True, loan_application=LoanApplicationFactory(applicant=user))


@pytest.fixture
def make_webhook_request(rf):
    """
    Build a signed POST to the webhook endpoint.

    Usage:
        request = make_webhook_request(payload)
        request = make_webhook_request(payload, signature="forged")
    """

    def _make(payload, signature=None, timestamp=WEBHOOK_TIMESTAMP):
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        headers = {}
        if timestamp is not None:
            headers["HTTP_X_WEBHOOK_TIMESTAMP"] = timestamp
        if signature is None:
            signature = sign(body, timestamp or "")
        if signature:
            headers["HTTP_X_WEBHOOK_SIGNATURE"] = signature
        return rf.post(WEBHOOK_PATH, data=body, content_type="application/json", **headers)

    return _make
