"""
Payment services for coordinating payment operations.

This module provides:
- PaymentIntentService: Opens gateway orders and records CREATED payments
- PaymentReconciler: Applies gateway outcomes exactly once (verify + webhook)
- RefundService: Refunds SUCCESS payments and reverses their side effects
- PaymentService: Owner-scoped status, history, deletion, return redirect

Usage:
    from payments.services import PaymentIntentService, PaymentReconciler

    result = PaymentIntentService().initiate_raw(
        owner_id=user.id,
        payment_type="LOAN_FEE",
        loan_application_id=42,
    )

    verification = PaymentReconciler().verify(result.gateway_order_id, user)

    from payments.services import RefundService

    payment = RefundService().refund(payment.id, reason="duplicate")
"""

from payments.services.intent_service import (
    PaymentIntentResult,
    PaymentIntentService,
)
from payments.services.payment_service import PaymentService
from payments.services.reconciler import (
    PaymentReconciler,
    VerificationResult,
    classify_gateway_status,
)
from payments.services.refund_service import RefundService

__all__ = [
    "PaymentIntentResult",
    "PaymentIntentService",
    "PaymentReconciler",
    "PaymentService",
    "RefundService",
    "VerificationResult",
    "classify_gateway_status",
]
