"""
State machine enums and helpers for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    DELETABLE_STATUSES,
    RECONCILED_STATUSES,
    PaymentStatus,
    PaymentType,
    WebhookEventStatus,
)

__all__ = [
    "DELETABLE_STATUSES",
    "PaymentStatus",
    "PaymentType",
    "RECONCILED_STATUSES",
    "WebhookEventStatus",
]
