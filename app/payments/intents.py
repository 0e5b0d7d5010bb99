"""
Typed payment intents.

An intent says what a payment is for. Each PaymentType has exactly one
variant, and only the variant's fields reach Payment.notes, so the notes
bag never carries anything the side effects do not understand.

Usage:
    from payments.intents import build_intent

    intent = build_intent("MEMBERSHIP", notes={"membership_type": "yearly"})
    # MembershipIntent(plan='yearly')
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from memberships.models import MembershipPlan

from payments.exceptions import (
    InvalidPaymentTypeError,
    MissingLoanApplicationIdError,
    PaymentValidationError,
)
from payments.state_machines import PaymentType

if TYPE_CHECKING:
    from typing import Any

    from payments.models import Payment


@dataclass(frozen=True)
class MembershipIntent:
    """Buy or renew a membership on the given plan."""

    plan: str = MembershipPlan.MONTHLY

    payment_type = PaymentType.MEMBERSHIP
    loan_application_id = None

    def __post_init__(self) -> None:
        if self.plan not in MembershipPlan.values:
            raise PaymentValidationError(
                f"Invalid membership plan: {self.plan}",
                error_code="INVALID_MEMBERSHIP_PLAN",
                details={"plan": self.plan, "allowed": list(MembershipPlan.values)},
            )

    def to_notes(self) -> dict[str, Any]:
        return {"membership_type": self.plan}


@dataclass(frozen=True)
class LoanFeeIntent:
    """Pay the processing fee of a loan application."""

    loan_application_id: int

    payment_type = PaymentType.LOAN_FEE
    plan = None

    def to_notes(self) -> dict[str, Any]:
        return {"loan_application_id": self.loan_application_id}


@dataclass(frozen=True)
class DocumentFeeIntent:
    """Pay the document fee of a loan application."""

    loan_application_id: int

    payment_type = PaymentType.DOCUMENT_FEE
    plan = None

    def to_notes(self) -> dict[str, Any]:
        return {"loan_application_id": self.loan_application_id}


PaymentIntent = Union[MembershipIntent, LoanFeeIntent, DocumentFeeIntent]

FEE_INTENTS: dict[str, type[LoanFeeIntent] | type[DocumentFeeIntent]] = {
    PaymentType.LOAN_FEE: LoanFeeIntent,
    PaymentType.DOCUMENT_FEE: DocumentFeeIntent,
}


def _plan_from_notes(notes: dict[str, Any] | None) -> str:
    notes = notes or {}
    plan = notes.get("membership_type") or notes.get("membershipType")
    return str(plan).lower() if plan else MembershipPlan.MONTHLY


def build_intent(
    payment_type: str,
    notes: dict[str, Any] | None = None,
    loan_application_id: int | None = None,
) -> PaymentIntent:
    """
    Map a raw request onto one intent variant.

    Args:
        payment_type: LOAN_FEE, MEMBERSHIP or DOCUMENT_FEE
        notes: Request notes; only the membership plan is read from them
        loan_application_id: Required for fee types

    Raises:
        InvalidPaymentTypeError: Unknown payment type
        MissingLoanApplicationIdError: Fee type without a loan application
        PaymentValidationError: Unknown membership plan
    """
    if payment_type == PaymentType.MEMBERSHIP:
        return MembershipIntent(plan=_plan_from_notes(notes))

    intent_class = FEE_INTENTS.get(payment_type)
    if intent_class is None:
        raise InvalidPaymentTypeError(
            f"Invalid payment type: {payment_type}",
            details={"type": payment_type, "allowed": list(PaymentType.values)},
        )

    if loan_application_id in (None, ""):
        raise MissingLoanApplicationIdError(
            f"loan_application_id is required for {payment_type} payments",
            details={"type": payment_type},
        )

    return intent_class(loan_application_id=int(loan_application_id))


def intent_for_payment(payment: Payment) -> PaymentIntent:
    """Rebuild the intent a stored payment was created from."""
    return build_intent(
        payment.type,
        notes=payment.notes,
        loan_application_id=payment.loan_application_id,
    )
