"""
Authentication models.

This module defines the custom User model with email-based authentication.
Loan applicants and back-office staff share this model; the payment flow
reads name, email and mobile from it to build gateway customer details.

Related files:
    - managers.py: Custom user manager for email-based creation
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        name: Display name, sent to the payment gateway as customer_name
        mobile: Contact number, sent to the gateway as customer_phone
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin and staff APIs
        date_joined: When the user account was created
        updated_at: When the user record was last modified
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="Full name as shown to the payment gateway",
    )

    mobile = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Mobile number, with or without the +91 country prefix",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    # Timestamps
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        """Return the user's email as string representation."""
        return self.email

    def get_full_name(self):
        """Return the display name, or the email if no name is set."""
        return self.name or self.email

    def get_short_name(self):
        """Return the first word of the name, or the email local part."""
        if self.name:
            return self.name.split()[0]
        return self.email.split("@")[0]
