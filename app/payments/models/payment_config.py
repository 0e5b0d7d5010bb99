"""
PaymentConfig model: the price list for payment intents.

Back-office staff maintain these rows; the payment flow only reads them.

Usage:
    config = PaymentConfig.objects.resolve(PaymentType.MEMBERSHIP, plan_type="yearly")
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from memberships.models import MembershipPlan

from payments.state_machines import PaymentType


class PaymentConfigQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def resolve(self, payment_type: str, plan_type: str | None = None) -> PaymentConfig | None:
        """
        Return the active price for a payment type.

        MEMBERSHIP prices are additionally keyed on plan_type. When several
        active rows match, the most recently created one wins.
        """
        queryset = self.active().filter(type=payment_type)
        if payment_type == PaymentType.MEMBERSHIP:
            queryset = queryset.filter(plan_type=plan_type or MembershipPlan.MONTHLY)
        return queryset.order_by("-created_at", "-id").first()


class PaymentConfig(BaseModel):
    """
    Price for a payment type (and membership plan).

    Fields:
        type: Payment type this row prices
        plan_type: Membership plan (MEMBERSHIP rows only)
        amount: Price in major currency units
        currency: ISO 4217 code
        description: Shown in the back office
        is_active: Only active rows are used for new intents
    """

    type = models.CharField(
        max_length=20,
        choices=PaymentType.choices,
        db_index=True,
    )

    plan_type = models.CharField(
        max_length=10,
        choices=MembershipPlan.choices,
        blank=True,
        default="",
        help_text="Membership plan; empty for fee types",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)

    currency = models.CharField(max_length=3, default="INR")

    description = models.CharField(max_length=255, blank=True, default="")

    is_active = models.BooleanField(default=True, db_index=True)

    objects = PaymentConfigQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Configuration"
        verbose_name_plural = "Payment Configurations"
        indexes = [
            models.Index(
                fields=["type", "plan_type", "is_active"],
                name="payment_config_lookup_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_config_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        plan = f"/{self.plan_type}" if self.plan_type else ""
        return f"PaymentConfig({self.type}{plan}, {self.amount} {self.currency})"
