"""
Side effects of payment transitions.

Every PaymentType maps to exactly one effect. The coordinator applies the
effect when a payment reaches SUCCESS and reverses it when the payment is
refunded. Effects never open their own transaction: they run inside the
caller's atomic block so the payment row and the dependent aggregate
commit or roll back together.

Effects:
    MEMBERSHIP -> MembershipEffect: activate or renew the payer's membership
    LOAN_FEE, DOCUMENT_FEE -> LoanFeeEffect: flip the loan application's
        payment_status between pending and paid

Usage:
    from payments.effects import SideEffectCoordinator

    with transaction.atomic():
        payment.mark_succeeded(...)
        payment.save()
        SideEffectCoordinator.apply_success(payment)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from dateutil.relativedelta import relativedelta
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from loans.models import LoanApplication
from memberships.models import Membership, MembershipPlan

from payments.state_machines import PaymentType

if TYPE_CHECKING:
    from payments.models import Payment

logger = logging.getLogger(__name__)


class PaymentEffect(ABC):
    """Mutation of a dependent aggregate driven by a payment transition."""

    @abstractmethod
    def apply(self, payment: Payment) -> None:
        """Apply the effect of a successful payment."""

    @abstractmethod
    def reverse(self, payment: Payment) -> None:
        """Undo the effect after the payment is refunded."""


class MembershipEffect(PaymentEffect):
    """
    Activate or renew the payer's membership.

    A new cycle always starts now: yearly plans run one calendar year,
    everything else one calendar month. The membership row is locked for
    the rest of the caller's transaction.
    """

    @staticmethod
    def cycle_end(start, plan: str | None):
        if plan == MembershipPlan.YEARLY:
            return start + relativedelta(years=1)
        return start + relativedelta(months=1)

    def apply(self, payment: Payment) -> None:
        plan = payment.membership_plan or MembershipPlan.MONTHLY
        start = timezone.now()
        end = self.cycle_end(start, plan)

        membership = Membership.objects.select_for_update().filter(user_id=payment.user_id).first()
        if membership is None:
            membership = Membership(user_id=payment.user_id)
            created = True
        else:
            created = False

        membership.activate(plan_type=plan, start_date=start, end_date=end, payment=payment)
        membership.save()

        logger.info(
            "Membership %s",
            "created" if created else "renewed",
            extra={
                "payment_id": str(payment.id),
                "user_id": payment.user_id,
                "plan_type": plan,
                "end_date": end.isoformat(),
            },
        )

    def reverse(self, payment: Payment) -> None:
        membership = Membership.objects.select_for_update().filter(user_id=payment.user_id).first()
        if membership is None:
            logger.warning(
                "No membership to cancel for refunded payment",
                extra={"payment_id": str(payment.id), "user_id": payment.user_id},
            )
            return

        membership.cancel()
        membership.save(update_fields=["status", "is_active", "updated_at"])
        logger.info(
            "Membership cancelled",
            extra={"payment_id": str(payment.id), "user_id": payment.user_id},
        )


class LoanFeeEffect(PaymentEffect):
    """Flip the linked loan application's payment_status."""

    def _application(self, payment: Payment) -> LoanApplication | None:
        if payment.loan_application_id is None:
            return None
        return LoanApplication.objects.select_for_update().filter(pk=payment.loan_application_id).first()

    def apply(self, payment: Payment) -> None:
        application = self._application(payment)
        if application is None:
            return
        application.mark_fee_paid()
        logger.info(
            "Loan application fee marked paid",
            extra={"payment_id": str(payment.id), "loan_application_id": application.pk},
        )

    def reverse(self, payment: Payment) -> None:
        application = self._application(payment)
        if application is None:
            return
        application.mark_fee_pending()
        logger.info(
            "Loan application fee reverted to pending",
            extra={"payment_id": str(payment.id), "loan_application_id": application.pk},
        )


EFFECTS: dict[str, PaymentEffect] = {
    PaymentType.MEMBERSHIP: MembershipEffect(),
    PaymentType.LOAN_FEE: LoanFeeEffect(),
    PaymentType.DOCUMENT_FEE: LoanFeeEffect(),
}


class SideEffectCoordinator:
    """
    Dispatches payment transitions to their effect.

    Must be called inside the transaction that saved the transition.
    """

    @staticmethod
    def effect_for(payment_type: str) -> PaymentEffect:
        try:
            return EFFECTS[payment_type]
        except KeyError:
            raise ImproperlyConfigured(
                f"No side effect registered for payment type {payment_type}"
            ) from None

    @classmethod
    def apply_success(cls, payment: Payment) -> None:
        cls.effect_for(payment.type).apply(payment)

    @classmethod
    def reverse(cls, payment: Payment) -> None:
        cls.effect_for(payment.type).reverse(payment)
