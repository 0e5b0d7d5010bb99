"""
Memberships app configuration.
"""

from django.apps import AppConfig


class MembershipsConfig(AppConfig):
    """Configuration for the memberships application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "memberships"
    verbose_name = "Memberships"
