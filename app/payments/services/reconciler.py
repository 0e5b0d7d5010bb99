"""
Reconciliation of gateway outcomes onto payments.

Two callers race to report the same outcome: the payer's browser calls
verify after checkout, and the gateway delivers a webhook. Both end in
PaymentReconciler.reconcile(), which applies the outcome exactly once.

Concurrency:
    reconcile() runs lookup, guard, transition, save and side effects in a
    single transaction.atomic() block:

    1. select_for_update() serialises callers on databases with row locks
    2. The save is UPDATE ... WHERE status='CREATED' (ConcurrentTransitionMixin),
       so a caller holding a stale copy loses with ConcurrentTransition
    3. The loser's block rolls back and it returns the winner's record

    Side effects run after the save inside the same block, so no reader
    ever sees SUCCESS without the membership or loan flag already applied.

Usage:
    from payments.services import PaymentReconciler

    payment = PaymentReconciler().reconcile(
        gateway_order_id="order_1729230000000_12_a1b2c3",
        reported_status="SUCCESS",
        gateway_payment_id="5114910576212",
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django_fsm import ConcurrentTransition

from core.services import BaseService

from payments.adapters import CashfreeAdapter
from payments.conf import GatewayConfig
from payments.effects import SideEffectCoordinator
from payments.exceptions import (
    GatewayError,
    GatewayVerificationError,
    PaymentNotFoundError,
    PaymentVerificationError,
)
from payments.models import Payment

if TYPE_CHECKING:
    from authentication.models import User


# =============================================================================
# Gateway Status Classification
# =============================================================================

SUCCEEDED = "SUCCEEDED"
FAILED = "FAILED"
PENDING = "PENDING"

SUCCESS_STATUSES = frozenset(["SUCCESS"])
FAILURE_STATUSES = frozenset(["FAILED", "USER_DROPPED", "CANCELLED", "VOID"])


def classify_gateway_status(reported_status: str | None) -> str:
    """
    Normalise a gateway payment_status into SUCCEEDED, FAILED or PENDING.

    PENDING covers everything that is not final yet (PENDING, NOT_ATTEMPTED,
    FLAGGED, unknown values); it never mutates a payment.
    """
    status = (reported_status or "").strip().upper()
    if status in SUCCESS_STATUSES:
        return SUCCEEDED
    if status in FAILURE_STATUSES:
        return FAILED
    return PENDING


@dataclass
class VerificationResult:
    """
    Result of a client verification.

    Attributes:
        payment: Payment after reconciliation
        outcome: SUCCEEDED, FAILED or PENDING as classified from the gateway
    """

    payment: Payment
    outcome: str


# =============================================================================
# Reconciler
# =============================================================================


class PaymentReconciler(BaseService):
    """
    Applies gateway outcomes to payments exactly once.

    Reconciled payments (SUCCESS, FAILED, REFUNDED) are returned unchanged,
    which makes every entry point safe to repeat.
    """

    def __init__(self, gateway: CashfreeAdapter | None = None, config: GatewayConfig | None = None):
        self._gateway = gateway
        self._config = config

    @property
    def gateway(self) -> CashfreeAdapter:
        # Webhook reconciliation never calls the gateway; build lazily
        if self._gateway is None:
            self._gateway = CashfreeAdapter(self._config or GatewayConfig.from_settings())
        return self._gateway

    def _lock_payment(self, gateway_order_id: str) -> Payment:
        try:
            return Payment.objects.select_for_update().get(gateway_order_id=gateway_order_id)
        except Payment.DoesNotExist:
            raise PaymentNotFoundError(
                f"Payment for order {gateway_order_id} not found",
                details={"gateway_order_id": gateway_order_id},
            ) from None

    def reconcile(
        self,
        gateway_order_id: str,
        reported_status: str | None,
        gateway_payment_id: str | None = None,
        message: str | None = None,
    ) -> Payment:
        """
        Apply a gateway-reported outcome to the payment for an order.

        Args:
            gateway_order_id: Order id at the gateway
            reported_status: Gateway payment_status (SUCCESS, FAILED, ...)
            gateway_payment_id: Gateway payment attempt id
            message: Gateway message, stored as failure_reason on failure

        Returns:
            The payment as committed (possibly by a concurrent caller)

        Raises:
            PaymentNotFoundError: No payment for the order id
        """
        logger = self.get_logger()
        outcome = classify_gateway_status(reported_status)
        log_context = {
            "gateway_order_id": gateway_order_id,
            "reported_status": reported_status,
            "outcome": outcome,
            "gateway_payment_id": gateway_payment_id,
        }

        try:
            with self.atomic():
                payment = self._lock_payment(gateway_order_id)

                if payment.is_reconciled:
                    logger.info(
                        "Payment already reconciled, skipping",
                        extra={**log_context, "status": payment.status},
                    )
                    return payment

                if outcome == PENDING:
                    logger.info("Payment not final at gateway yet", extra=log_context)
                    return payment

                if outcome == SUCCEEDED:
                    payment.mark_succeeded(gateway_payment_id=gateway_payment_id)
                    payment.save()
                    SideEffectCoordinator.apply_success(payment)
                else:
                    payment.mark_failed(reason=message, gateway_payment_id=gateway_payment_id)
                    payment.save()

        except ConcurrentTransition:
            winner = Payment.objects.get(gateway_order_id=gateway_order_id)
            logger.info(
                "Lost reconciliation race, returning committed payment",
                extra={**log_context, "status": winner.status},
            )
            return winner

        logger.info(
            "Payment reconciled",
            extra={**log_context, "payment_id": str(payment.id), "status": payment.status},
        )
        return payment

    def verify(
        self,
        gateway_order_id: str,
        user: User,
        gateway_payment_id: str | None = None,
        reported_status: str | None = None,
    ) -> VerificationResult:
        """
        Verify a payment after checkout by asking the gateway.

        The gateway's view of the order is authoritative. A status reported
        by the client is logged for comparison and otherwise ignored.

        Args:
            gateway_order_id: Order id returned by initiate
            user: Requesting user; must own the payment unless staff
            gateway_payment_id: Fallback id if the gateway omits cf_payment_id
            reported_status: Status the client believes the payment has

        Raises:
            PaymentNotFoundError: Unknown order, or owned by another user
            PaymentVerificationError: Gateway has no attempt for the order yet
            GatewayVerificationError: Gateway call failed
        """
        logger = self.get_logger()

        owned = Payment.objects.filter(gateway_order_id=gateway_order_id)
        if not user.is_staff:
            owned = owned.filter(user=user)
        if not owned.exists():
            raise PaymentNotFoundError(
                f"Payment for order {gateway_order_id} not found",
                details={"gateway_order_id": gateway_order_id},
            )

        try:
            attempts = self.gateway.fetch_payments_for_order(gateway_order_id)
        except GatewayError as e:
            logger.error(
                "Could not fetch payments from gateway",
                extra={"gateway_order_id": gateway_order_id, "error_code": e.error_code},
            )
            raise GatewayVerificationError.wrap(e) from e

        if not attempts:
            raise PaymentVerificationError(
                "No payment attempt found for this order",
                details={"gateway_order_id": gateway_order_id},
            )

        attempt = attempts[0]
        if reported_status and classify_gateway_status(reported_status) != classify_gateway_status(
            attempt.payment_status
        ):
            logger.warning(
                "Client-reported status disagrees with gateway",
                extra={
                    "gateway_order_id": gateway_order_id,
                    "reported_status": reported_status,
                    "gateway_status": attempt.payment_status,
                },
            )

        payment = self.reconcile(
            gateway_order_id,
            attempt.payment_status,
            gateway_payment_id=attempt.cf_payment_id or gateway_payment_id,
            message=attempt.payment_message,
        )
        return VerificationResult(payment=payment, outcome=classify_gateway_status(attempt.payment_status))
