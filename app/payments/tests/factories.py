"""
Factory Boy factories for payment test data.

Usage:
    from payments.tests.factories import PaymentConfigFactory, PaymentFactory

    # CREATED membership payment on the monthly plan
    payment = PaymentFactory()

    # LOAN_FEE payment for an application
    payment = PaymentFactory(loan_fee=True)

    # Payment in a given state (status is FSM-protected, so it is set at insert)
    payment = PaymentFactory(status=PaymentStatus.SUCCESS)
"""

import secrets
from decimal import Decimal

import factory

from authentication.tests.factories import UserFactory
from loans.tests.factories import LoanApplicationFactory
from memberships.models import MembershipPlan
from payments.models import Payment, PaymentConfig, WebhookEvent
from payments.state_machines import PaymentStatus, PaymentType, WebhookEventStatus


class PaymentConfigFactory(factory.django.DjangoModelFactory):
    """Active monthly membership price of 299 INR."""

    class Meta:
        model = PaymentConfig

    type = PaymentType.MEMBERSHIP
    plan_type = MembershipPlan.MONTHLY
    amount = Decimal("299.00")
    currency = "INR"
    description = factory.LazyAttribute(lambda o: f"{o.type} {o.plan_type}".strip())
    is_active = True

    class Params:
        loan_fee = factory.Trait(type=PaymentType.LOAN_FEE, plan_type="", amount=Decimal("1500.00"))
        document_fee = factory.Trait(type=PaymentType.DOCUMENT_FEE, plan_type="", amount=Decimal("500.00"))


class PaymentFactory(factory.django.DjangoModelFactory):
    """
    Factory for Payment.

    Defaults to a CREATED monthly membership payment. Use the loan_fee or
    document_fee traits for fee payments linked to an application.
    """

    class Meta:
        model = Payment

    user = factory.SubFactory(UserFactory)
    loan_application = None
    gateway_order_id = factory.Sequence(lambda n: f"order_1729230000000_{n}_{secrets.token_hex(3)}")
    payment_session_id = factory.Sequence(lambda n: f"session_test_{n}")
    amount = Decimal("299.00")
    currency = "INR"
    type = PaymentType.MEMBERSHIP
    receipt = factory.Sequence(lambda n: f"receipt_{n}")
    notes = factory.LazyAttribute(
        lambda o: {"membership_type": MembershipPlan.MONTHLY}
        if o.type == PaymentType.MEMBERSHIP
        else {"loan_application_id": o.loan_application.pk if o.loan_application else None}
    )
    status = PaymentStatus.CREATED

    class Params:
        loan_fee = factory.Trait(
            type=PaymentType.LOAN_FEE,
            amount=Decimal("1500.00"),
            loan_application=factory.SubFactory(
                LoanApplicationFactory, applicant=factory.SelfAttribute("..user")
            ),
        )
        document_fee = factory.Trait(
            type=PaymentType.DOCUMENT_FEE,
            amount=Decimal("500.00"),
            loan_application=factory.SubFactory(
                LoanApplicationFactory, applicant=factory.SelfAttribute("..user")
            ),
        )
        yearly = factory.Trait(
            amount=Decimal("2999.00"),
            notes={"membership_type": MembershipPlan.YEARLY},
        )


class WebhookEventFactory(factory.django.DjangoModelFactory):
    """A stored PAYMENT_SUCCESS_WEBHOOK delivery awaiting processing."""

    class Meta:
        model = WebhookEvent

    event_type = "PAYMENT_SUCCESS_WEBHOOK"
    gateway_order_id = factory.Sequence(lambda n: f"order_1729230000000_{n}_abcdef")
    gateway_payment_id = factory.Sequence(lambda n: str(5114910576000 + n))
    status = WebhookEventStatus.PENDING
    signature_verified = True
    payload = factory.LazyAttribute(
        lambda o: {
            "type": o.event_type,
            "event_time": "2026-10-18T10:15:00+05:30",
            "data": {
                "order": {"order_id": o.gateway_order_id, "order_amount": 299.0},
                "payment": {
                    "cf_payment_id": int(o.gateway_payment_id),
                    "payment_status": "SUCCESS",
                    "payment_message": "Transaction successful",
                },
            },
        }
    )
