"""
Loans app configuration.

Loan applications are managed by the back office; the payments app only
flips their fee status.
"""

from django.apps import AppConfig


class LoansConfig(AppConfig):
    """Configuration for the loans application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "loans"
    verbose_name = "Loans"
