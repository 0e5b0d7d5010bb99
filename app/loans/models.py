"""
LoanApplication model.

The loan application aggregate is owned by the back-office CRUD screens.
The payments app is allowed to touch exactly one field, payment_status,
through mark_fee_paid() and mark_fee_pending().

Usage:
    from loans.models import LoanApplication

    application = LoanApplication.objects.select_for_update().get(id=42)
    application.mark_fee_paid()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


class LoanApplicationStatus(models.TextChoices):
    """Review status of a loan application (owned by the back office)."""

    DRAFT = "draft", "Draft"
    SUBMITTED = "submitted", "Submitted"
    UNDER_REVIEW = "under_review", "Under Review"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class LoanPaymentStatus(models.TextChoices):
    """Whether the processing/document fee for the application has been paid."""

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"


class LoanApplication(BaseModel):
    """
    A loan application submitted by an applicant.

    Fields:
        applicant: User who applied
        amount_requested: Loan principal requested
        purpose: Free-text purpose of the loan
        status: Back-office review status
        payment_status: Fee status, driven by LOAN_FEE/DOCUMENT_FEE payments
    """

    applicant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="loan_applications",
        help_text="User who submitted the application",
    )

    amount_requested = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Loan principal requested",
    )

    purpose = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Purpose of the loan",
    )

    status = models.CharField(
        max_length=20,
        choices=LoanApplicationStatus.choices,
        default=LoanApplicationStatus.SUBMITTED,
        db_index=True,
        help_text="Back-office review status",
    )

    payment_status = models.CharField(
        max_length=10,
        choices=LoanPaymentStatus.choices,
        default=LoanPaymentStatus.PENDING,
        db_index=True,
        help_text="Whether the application fee has been paid",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Loan Application"
        verbose_name_plural = "Loan Applications"
        indexes = [
            models.Index(fields=["applicant", "status"], name="loan_applicant_status_idx"),
        ]

    def __str__(self) -> str:
        return f"LoanApplication({self.pk}, {self.status}, fee {self.payment_status})"

    @property
    def is_fee_paid(self) -> bool:
        return self.payment_status == LoanPaymentStatus.PAID

    def mark_fee_paid(self) -> None:
        """Set payment_status to paid and save only that field."""
        self.payment_status = LoanPaymentStatus.PAID
        self.save(update_fields=["payment_status", "updated_at"])

    def mark_fee_pending(self) -> None:
        """Set payment_status back to pending and save only that field."""
        self.payment_status = LoanPaymentStatus.PENDING
        self.save(update_fields=["payment_status", "updated_at"])
