"""
Factory Boy factories for loan models.
"""

from decimal import Decimal

import factory

from authentication.tests.factories import UserFactory
from loans.models import LoanApplication, LoanApplicationStatus, LoanPaymentStatus


class LoanApplicationFactory(factory.django.DjangoModelFactory):
    """Submitted application with an unpaid fee."""

    class Meta:
        model = LoanApplication
        skip_postgeneration_save = True

    applicant = factory.SubFactory(UserFactory)
    amount_requested = Decimal("250000.00")
    purpose = "Home renovation"
    status = LoanApplicationStatus.SUBMITTED
    payment_status = LoanPaymentStatus.PENDING
