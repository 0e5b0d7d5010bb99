"""
Membership model.

Each user has at most one Membership row. A MEMBERSHIP payment either
creates it or re-activates it with fresh dates; a refund cancels it.
Cancellation is terminal for that membership cycle: the next successful
payment starts a new cycle on the same row.

Usage:
    from memberships.models import Membership

    membership = Membership.objects.select_for_update().filter(user=user).first()
    membership.activate(plan_type="monthly", start_date=start, end_date=end)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


class MembershipStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    CANCELLED = "CANCELLED", "Cancelled"


class MembershipPlan(models.TextChoices):
    """Plan discriminator carried by MEMBERSHIP payments."""

    MONTHLY = "monthly", "Monthly"
    YEARLY = "yearly", "Yearly"


class Membership(BaseModel):
    """
    A user's paid membership.

    Fields:
        user: Owner (one row per user)
        status: ACTIVE or CANCELLED
        is_active: Mirrors status, kept for list filtering
        plan_type: Plan the current cycle was bought with
        start_date/end_date: Current cycle window
        last_payment: Payment that started the current cycle
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="membership",
        help_text="Member (at most one membership row per user)",
    )

    status = models.CharField(
        max_length=10,
        choices=MembershipStatus.choices,
        default=MembershipStatus.ACTIVE,
        db_index=True,
    )

    is_active = models.BooleanField(default=True, db_index=True)

    plan_type = models.CharField(
        max_length=10,
        choices=MembershipPlan.choices,
        default=MembershipPlan.MONTHLY,
    )

    start_date = models.DateTimeField(help_text="Start of the current cycle")
    end_date = models.DateTimeField(help_text="End of the current cycle")

    last_payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Payment that started the current cycle",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Membership"
        verbose_name_plural = "Memberships"
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(status=MembershipStatus.ACTIVE, is_active=True)
                    | models.Q(status=MembershipStatus.CANCELLED, is_active=False)
                ),
                name="membership_is_active_matches_status",
            ),
        ]

    def __str__(self) -> str:
        return f"Membership({self.user_id}, {self.status}, until {self.end_date:%Y-%m-%d})"

    def activate(self, plan_type, start_date, end_date, payment=None) -> None:
        """Start a new ACTIVE cycle. Does not save - caller must save."""
        self.status = MembershipStatus.ACTIVE
        self.is_active = True
        self.plan_type = plan_type
        self.start_date = start_date
        self.end_date = end_date
        self.last_payment = payment

    def cancel(self) -> None:
        """End the current cycle. Does not save - caller must save."""
        self.status = MembershipStatus.CANCELLED
        self.is_active = False
