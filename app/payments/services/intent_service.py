"""
Payment intent service: opens a gateway order and records a CREATED Payment.

Validation runs completely before the gateway is contacted, and the
Payment row is written only after the gateway accepted the order, so a
rejected request leaves neither a row nor an order behind.

Usage:
    from payments.services import PaymentIntentService
    from payments.intents import MembershipIntent

    result = PaymentIntentService().initiate(
        owner_id=user.id,
        intent=MembershipIntent(plan="monthly"),
    )
    result.payment_session_id  # hand to the hosted checkout
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model

from core.services import BaseService
from loans.models import LoanApplication
from memberships.models import Membership, MembershipStatus

from payments.adapters import CashfreeAdapter, CreateOrderParams
from payments.conf import GatewayConfig
from payments.exceptions import (
    ConfigNotFoundError,
    DuplicateActiveMembershipError,
    GatewayError,
    GatewaySessionError,
    LoanApplicationNotFoundError,
    PaymentValidationError,
    UserNotFoundError,
)
from payments.intents import MembershipIntent, PaymentIntent, build_intent
from payments.models import Payment, PaymentConfig
from payments.state_machines import PaymentType

if TYPE_CHECKING:
    from typing import Any


DEFAULT_CURRENCY = "INR"

# Cashfree requires a phone number on every order
PHONE_PREFIX = "+91"


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_order_id(owner_id: int) -> str:
    """order_<epoch ms>_<owner id>_<6 hex>"""
    return f"order_{now_ms()}_{owner_id}_{secrets.token_hex(3)}"


def normalize_phone(phone: str | None) -> str:
    phone = (phone or "").strip().replace(" ", "")
    if not phone:
        return ""
    if phone.startswith("+"):
        return phone
    return f"{PHONE_PREFIX}{phone}"


@dataclass
class PaymentIntentResult:
    """
    Result of opening a payment.

    Attributes:
        gateway_order_id: Order id at the gateway
        payment_session_id: Session for the hosted checkout
        order_status: Gateway order status (ACTIVE on success)
        payment: The CREATED Payment row
    """

    gateway_order_id: str
    payment_session_id: str
    order_status: str
    payment: Payment


class PaymentIntentService(BaseService):
    """
    Opens payments with the gateway.

    Validation Order:
        1. Payment type is known
        2. Fee types name a loan application
        3. The loan application exists
        4. An active PaymentConfig prices the type (and plan)
        5. MEMBERSHIP: the owner has no ACTIVE membership
        6. The owner exists

    A caller-supplied amount overrides the configured price.
    """

    def __init__(self, gateway: CashfreeAdapter | None = None, config: GatewayConfig | None = None):
        self.config = config or GatewayConfig.from_settings()
        self.gateway = gateway or CashfreeAdapter(self.config)

    def initiate_raw(
        self,
        owner_id: int,
        payment_type: str,
        amount: Decimal | None = None,
        currency: str = DEFAULT_CURRENCY,
        notes: dict[str, Any] | None = None,
        loan_application_id: int | None = None,
        receipt: str | None = None,
    ) -> PaymentIntentResult:
        """Build the typed intent from request fields, then initiate()."""
        intent = build_intent(payment_type, notes=notes, loan_application_id=loan_application_id)
        return self.initiate(
            owner_id=owner_id,
            intent=intent,
            amount=amount,
            currency=currency,
            receipt=receipt,
        )

    def initiate(
        self,
        owner_id: int,
        intent: PaymentIntent,
        amount: Decimal | None = None,
        currency: str = DEFAULT_CURRENCY,
        receipt: str | None = None,
    ) -> PaymentIntentResult:
        """
        Open a gateway order for the intent and persist a CREATED Payment.

        Args:
            owner_id: Paying user's id
            intent: MembershipIntent, LoanFeeIntent or DocumentFeeIntent
            amount: Optional override of the configured price
            currency: ISO 4217 code (default INR)
            receipt: Receipt reference (default receipt_<epoch ms>)

        Returns:
            PaymentIntentResult

        Raises:
            LoanApplicationNotFoundError: Referenced application missing
            ConfigNotFoundError: No active price for the type/plan
            DuplicateActiveMembershipError: Owner already has an ACTIVE membership
            UserNotFoundError: Owner missing
            PaymentValidationError: Non-positive amount override
            GatewaySessionError: Gateway rejected or failed the order
        """
        logger = self.get_logger()
        payment_type = intent.payment_type

        loan_application = None
        if intent.loan_application_id is not None:
            loan_application = LoanApplication.objects.filter(pk=intent.loan_application_id).first()
            if loan_application is None:
                raise LoanApplicationNotFoundError(
                    f"Loan application {intent.loan_application_id} not found",
                    details={"loan_application_id": intent.loan_application_id},
                )

        config = PaymentConfig.objects.resolve(payment_type, plan_type=intent.plan)
        if config is None:
            raise ConfigNotFoundError(
                f"No active payment configuration for {payment_type}",
                details={"type": payment_type, "plan_type": intent.plan},
            )

        if isinstance(intent, MembershipIntent):
            has_active = Membership.objects.filter(
                user_id=owner_id, status=MembershipStatus.ACTIVE
            ).exists()
            if has_active:
                raise DuplicateActiveMembershipError(
                    "User already has an active membership",
                    details={"user_id": owner_id},
                )

        owner = get_user_model().objects.filter(pk=owner_id).first()
        if owner is None:
            raise UserNotFoundError(f"User {owner_id} not found", details={"user_id": owner_id})

        if amount is not None and Decimal(amount) <= 0:
            raise PaymentValidationError(
                "Amount must be positive",
                error_code="INVALID_AMOUNT",
                details={"amount": str(amount)},
            )
        charge = Decimal(amount) if amount is not None else config.amount
        currency = currency or config.currency or DEFAULT_CURRENCY

        order_id = generate_order_id(owner_id)
        notes = {
            "user_id": owner_id,
            "type": payment_type,
            "config_id": config.pk,
            **intent.to_notes(),
        }

        logger.info(
            "Opening payment order",
            extra={
                "order_id": order_id,
                "user_id": owner_id,
                "type": payment_type,
                "amount": str(charge),
                "amount_overridden": amount is not None,
            },
        )

        try:
            order = self.gateway.create_order(
                CreateOrderParams(
                    order_id=order_id,
                    amount=charge,
                    currency=currency,
                    customer_id=f"customer_{owner_id}",
                    customer_phone=normalize_phone(getattr(owner, "mobile", "")),
                    customer_name=owner.get_full_name() or None,
                    customer_email=owner.email or None,
                    order_note=self._order_note(payment_type, intent.loan_application_id),
                    order_tags=self._order_tags(owner_id, payment_type, config.pk, intent),
                )
            )
        except GatewayError as e:
            logger.error(
                "Gateway rejected payment order",
                extra={"order_id": order_id, "error_code": e.error_code, "gateway_code": e.gateway_code},
            )
            raise GatewaySessionError.wrap(e) from e

        payment = Payment.objects.create(
            user=owner,
            loan_application=loan_application,
            gateway_order_id=order.order_id,
            payment_session_id=order.payment_session_id,
            amount=charge,
            currency=currency,
            type=payment_type,
            receipt=receipt or f"receipt_{now_ms()}",
            notes=notes,
        )

        logger.info(
            "Payment created",
            extra={"payment_id": str(payment.id), "order_id": payment.gateway_order_id},
        )

        return PaymentIntentResult(
            gateway_order_id=payment.gateway_order_id,
            payment_session_id=order.payment_session_id,
            order_status=order.order_status,
            payment=payment,
        )

    @staticmethod
    def _order_note(payment_type: str, loan_application_id: int | None) -> str:
        return f"Payment for {payment_type} - Application ID: {loan_application_id or 'N/A'}"

    @staticmethod
    def _order_tags(owner_id: int, payment_type: str, config_id: int, intent: PaymentIntent) -> dict[str, str]:
        tags = {
            "user_id": str(owner_id),
            "type": payment_type,
            "config_id": str(config_id),
        }
        if intent.loan_application_id is not None:
            tags["loan_application_id"] = str(intent.loan_application_id)
        if payment_type == PaymentType.MEMBERSHIP:
            tags["membership_type"] = intent.plan
        return tags
