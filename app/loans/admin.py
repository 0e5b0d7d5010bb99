"""
Django admin configuration for loan applications.
"""

from django.contrib import admin

from loans.models import LoanApplication


@admin.register(LoanApplication)
class LoanApplicationAdmin(admin.ModelAdmin):
    """Admin for loan applications; fee status is read-only here."""

    list_display = (
        "id",
        "applicant",
        "amount_requested",
        "status",
        "payment_status",
        "created_at",
    )
    list_filter = ("status", "payment_status")
    search_fields = ("applicant__email", "applicant__mobile", "purpose")
    readonly_fields = ("payment_status", "created_at", "updated_at")
    raw_id_fields = ("applicant",)
