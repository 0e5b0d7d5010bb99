"""
Payment model for the payment lifecycle.

Payment is the central aggregate: created by the intent service in
CREATED, moved exactly once to SUCCESS or FAILED by the reconciler, and
optionally moved once more to REFUNDED by the refund service.

Usage:
    from payments.models import Payment
    from payments.state_machines import PaymentStatus

    payment = Payment.objects.select_for_update().get(gateway_order_id=order_id)
    payment.mark_succeeded(gateway_payment_id="5114910576212")
    payment.save()  # UPDATE ... WHERE status = 'CREATED'

Concurrency:
    ConcurrentTransitionMixin makes every save of a loaded instance
    conditional on the status it was loaded with. A second writer holding
    a stale copy gets django_fsm.ConcurrentTransition instead of silently
    overwriting the first writer's transition.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import (
    DELETABLE_STATUSES,
    RECONCILED_STATUSES,
    PaymentStatus,
    PaymentType,
)


class Payment(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, BaseModel):
    """
    A payment opened with the gateway on behalf of a user.

    State Flow:
        CREATED -> SUCCESS -> REFUNDED
        CREATED -> FAILED

    Fields:
        user: Payer
        loan_application: Linked application for LOAN_FEE/DOCUMENT_FEE
        gateway_order_id: Our order id at the gateway (unique)
        payment_session_id: Hosted checkout session handed to the client
        gateway_payment_id: Gateway's id for the successful attempt
        amount/currency: What the payer is charged
        type: LOAN_FEE, MEMBERSHIP or DOCUMENT_FEE
        receipt: Receipt reference shown to the payer
        notes: Intent data (plan, loan application id, config id)
        status: FSM status
        failure_reason: Gateway message when the payment failed
        paid_at: When the success was reconciled
        refund_*: Refund bookkeeping, set only by mark_refunded()
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="User making the payment",
    )

    loan_application = models.ForeignKey(
        "loans.LoanApplication",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments",
        help_text="Loan application this fee is paid for",
    )

    # ==========================================================================
    # Gateway Linkage
    # ==========================================================================

    gateway_order_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Order id sent to the gateway (order_<ms>_<user>_<hex>)",
    )

    payment_session_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Hosted checkout session id returned by the gateway",
    )

    gateway_payment_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="Gateway payment attempt id, set on reconciliation",
    )

    # ==========================================================================
    # Commercial Fields
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount charged, in major currency units",
    )

    currency = models.CharField(
        max_length=3,
        default="INR",
        help_text="ISO 4217 currency code",
    )

    type = models.CharField(
        max_length=20,
        choices=PaymentType.choices,
        db_index=True,
        help_text="What the payment is for",
    )

    receipt = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Receipt reference",
    )

    notes = models.JSONField(
        default=dict,
        blank=True,
        help_text="Intent data written from the typed intent",
    )

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    status = FSMField(
        default=PaymentStatus.CREATED,
        choices=PaymentStatus.choices,
        db_index=True,
        protected=True,  # Prevent direct assignment outside transitions
        help_text="Current status of the payment (managed by FSM)",
    )

    failure_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Gateway message if the payment failed",
    )

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the success was reconciled",
    )

    refund_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Refund id sent to the gateway",
    )

    refund_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Amount refunded",
    )

    refund_reason = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Reason recorded with the refund",
    )

    refunded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the refund was recorded",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment"
        verbose_name_plural = "Payments"
        indexes = [
            models.Index(fields=["user", "status"], name="payment_user_status_idx"),
            models.Index(fields=["user", "created_at"], name="payment_user_created_idx"),
            models.Index(fields=["type", "status"], name="payment_type_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        """Return string representation with order id, status, and amount."""
        return f"Payment({self.gateway_order_id}, {self.status}, {self.amount} {self.currency})"

    @property
    def is_reconciled(self) -> bool:
        """True once the gateway outcome has been applied."""
        return self.status in RECONCILED_STATUSES

    @property
    def is_refundable(self) -> bool:
        return self.status == PaymentStatus.SUCCESS

    @property
    def is_deletable(self) -> bool:
        return self.status in DELETABLE_STATUSES

    @property
    def membership_plan(self) -> str | None:
        """Plan discriminator for MEMBERSHIP payments."""
        return (self.notes or {}).get("membership_type")

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PaymentStatus.CREATED,
        target=PaymentStatus.SUCCESS,
    )
    def mark_succeeded(self, gateway_payment_id: str | None = None, paid_at=None):
        """
        Mark the payment as paid.

        Transition: CREATED -> SUCCESS

        Side effects on memberships and loan applications are applied by
        the reconciler in the same transaction as the save.
        """
        if gateway_payment_id:
            self.gateway_payment_id = gateway_payment_id
        self.paid_at = paid_at or timezone.now()
        self.failure_reason = None

    @transition(
        field=status,
        source=PaymentStatus.CREATED,
        target=PaymentStatus.FAILED,
    )
    def mark_failed(self, reason: str | None = None, gateway_payment_id: str | None = None):
        """
        Mark the payment as failed.

        Transition: CREATED -> FAILED

        Args:
            reason: Gateway message, stored as failure_reason
            gateway_payment_id: Id of the failed attempt, if the gateway sent one
        """
        self.failure_reason = reason or "Payment failed"
        if gateway_payment_id:
            self.gateway_payment_id = gateway_payment_id

    @transition(
        field=status,
        source=PaymentStatus.SUCCESS,
        target=PaymentStatus.REFUNDED,
    )
    def mark_refunded(self, refund_id: str, amount, reason: str | None = None, refunded_at=None):
        """
        Record an accepted refund.

        Transition: SUCCESS -> REFUNDED

        Args:
            refund_id: Refund id sent to the gateway
            amount: Refunded amount (full or partial)
            reason: Refund note
            refunded_at: Defaults to now
        """
        self.refund_id = refund_id
        self.refund_amount = amount
        self.refund_reason = reason
        self.refunded_at = refunded_at or timezone.now()
