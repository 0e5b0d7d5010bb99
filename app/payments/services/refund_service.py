"""
Refund service for returning money on successful payments.

Refunds follow a lock / gateway call / atomic completion pattern so the
gateway call never sits inside a transaction that could roll back after
the money has already moved.

Usage:
    from payments.services import RefundService

    payment = RefundService().refund(payment_id, amount=Decimal("100.00"), reason="duplicate")
    payment.status  # REFUNDED
"""

from __future__ import annotations

import time
import uuid
from decimal import Decimal

from django_fsm import ConcurrentTransition, TransitionNotAllowed

from core.services import BaseService

from payments.adapters import CashfreeAdapter, CreateRefundParams
from payments.conf import GatewayConfig
from payments.effects import SideEffectCoordinator
from payments.exceptions import (
    GatewayError,
    GatewayRefundError,
    InvalidStateTransitionError,
    LockAcquisitionError,
    PaymentNotEligibleForRefundError,
    PaymentNotFoundError,
    PaymentValidationError,
    StaleRecordError,
)
from payments.locks import DistributedLock
from payments.models import Payment
from payments.state_machines import PaymentStatus


# =============================================================================
# Constants
# =============================================================================

# Distributed lock TTL for refund execution (seconds)
REFUND_LOCK_TTL = 120

# Lock acquisition timeout (seconds)
REFUND_LOCK_TIMEOUT = 10.0

DEFAULT_REFUND_REASON = "requested_by_customer"


def generate_refund_id(payment_id: uuid.UUID) -> str:
    """refund_<epoch ms>_<first 12 hex of the payment id>"""
    return f"refund_{int(time.time() * 1000)}_{payment_id.hex[:12]}"


# =============================================================================
# Refund Service
# =============================================================================


class RefundService(BaseService):
    """
    Service for refunding SUCCESS payments.

    Flow:
        1. Acquire distributed lock on the payment
        2. Validate status and amount (no mutation on failure)
        3. Call the gateway OUTSIDE any transaction
        4. Atomically: re-read with select_for_update, mark_refunded, save
           (status compare-and-swap), reverse the side effect

    Safety Guarantees:
        - The lock prevents two operators refunding the same payment
        - Refund ids are generated here, so a timed-out call repeated with
          the same id is rejected by the gateway instead of paid twice
        - A gateway failure leaves the payment SUCCESS
    """

    def __init__(self, gateway: CashfreeAdapter | None = None, config: GatewayConfig | None = None):
        self.config = config or GatewayConfig.from_settings()
        self.gateway = gateway or CashfreeAdapter(self.config)

    def refund(
        self,
        payment_id: uuid.UUID,
        amount: Decimal | None = None,
        reason: str | None = DEFAULT_REFUND_REASON,
    ) -> Payment:
        """
        Refund a SUCCESS payment, fully or partially.

        Args:
            payment_id: Payment UUID
            amount: Amount to refund (None for the full amount)
            reason: Refund note sent to the gateway

        Returns:
            The REFUNDED payment

        Raises:
            LockAcquisitionError: Another refund for this payment is running
            PaymentNotFoundError: Unknown payment
            PaymentNotEligibleForRefundError: Payment is not SUCCESS
            PaymentValidationError: Amount not positive or above the paid amount
            GatewayRefundError: Gateway rejected or failed the refund
        """
        logger = self.get_logger()
        logger.info(
            "Starting refund",
            extra={"payment_id": str(payment_id), "amount": str(amount) if amount is not None else None},
        )

        lock_key = f"payment:refund:{payment_id}"
        try:
            with DistributedLock(lock_key, ttl=REFUND_LOCK_TTL, timeout=REFUND_LOCK_TIMEOUT):
                return self._refund_with_lock(payment_id, amount, reason or DEFAULT_REFUND_REASON)
        except LockAcquisitionError as e:
            logger.warning(
                "Failed to acquire lock for refund",
                extra={"payment_id": str(payment_id), "error": str(e)},
            )
            raise

    def _refund_with_lock(self, payment_id: uuid.UUID, amount: Decimal | None, reason: str) -> Payment:
        logger = self.get_logger()

        try:
            payment = Payment.objects.get(pk=payment_id)
        except Payment.DoesNotExist:
            raise PaymentNotFoundError(
                f"Payment {payment_id} not found",
                details={"payment_id": str(payment_id)},
            ) from None

        if payment.status != PaymentStatus.SUCCESS:
            raise PaymentNotEligibleForRefundError(
                f"Cannot refund a payment in {payment.status} state",
                details={"payment_id": str(payment.id), "status": payment.status},
            )

        refund_amount = payment.amount if amount is None else Decimal(amount)
        if refund_amount <= 0 or refund_amount > payment.amount:
            raise PaymentValidationError(
                f"Refund amount must be between 0 and {payment.amount}",
                error_code="INVALID_REFUND_AMOUNT",
                details={"amount": str(refund_amount), "paid_amount": str(payment.amount)},
            )

        refund_id = generate_refund_id(payment.id)

        # Gateway call happens outside any transaction
        try:
            result = self.gateway.create_refund(
                CreateRefundParams(
                    order_id=payment.gateway_order_id,
                    refund_id=refund_id,
                    amount=refund_amount,
                    note=reason,
                )
            )
        except GatewayError as e:
            logger.error(
                "Gateway refund failed",
                extra={
                    "payment_id": str(payment.id),
                    "refund_id": refund_id,
                    "error_code": e.error_code,
                    "is_retryable": e.is_retryable,
                },
            )
            raise GatewayRefundError.wrap(e) from e

        try:
            with self.atomic():
                payment = Payment.objects.select_for_update().get(pk=payment_id)
                payment.mark_refunded(
                    refund_id=result.refund_id,
                    amount=refund_amount,
                    reason=reason,
                )
                payment.save()
                SideEffectCoordinator.reverse(payment)
        except TransitionNotAllowed as e:
            # Gateway accepted the refund but the row moved on; needs an operator
            logger.error(
                "Refund accepted by gateway but payment is no longer SUCCESS",
                extra={"payment_id": str(payment_id), "refund_id": result.refund_id, "status": payment.status},
            )
            raise InvalidStateTransitionError(
                f"Cannot mark payment {payment_id} refunded from {payment.status}",
                details={"payment_id": str(payment_id), "refund_id": result.refund_id},
            ) from e
        except ConcurrentTransition as e:
            logger.error(
                "Refund accepted by gateway but payment changed concurrently",
                extra={"payment_id": str(payment_id), "refund_id": result.refund_id},
            )
            raise StaleRecordError(
                f"Payment {payment_id} was modified during refund",
                details={"payment_id": str(payment_id), "refund_id": result.refund_id},
            ) from e

        logger.info(
            "Refund completed",
            extra={
                "payment_id": str(payment.id),
                "refund_id": payment.refund_id,
                "refund_amount": str(refund_amount),
                "refund_status": result.refund_status,
            },
        )
        return payment
