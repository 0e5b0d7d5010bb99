"""
State and type enums for payment models.

These are Django TextChoices for database storage and admin integration.
Values are upper case because they are exchanged verbatim with clients
and appear in gateway order tags.

State Machines Overview:

Payment States:
    CREATED → SUCCESS → REFUNDED
    CREATED → FAILED

WebhookEvent States:
    pending → processed | ignored | failed
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    States for the Payment model lifecycle.

    Terminal states: FAILED, REFUNDED. SUCCESS is terminal for
    reconciliation; its only exit is a refund.

    State Flow:
        CREATED → SUCCESS (gateway reported success)
        CREATED → FAILED (gateway reported failure)
        SUCCESS → REFUNDED (refund accepted by the gateway)
    """

    CREATED = "CREATED", "Created"
    SUCCESS = "SUCCESS", "Success"
    FAILED = "FAILED", "Failed"
    REFUNDED = "REFUNDED", "Refunded"


# Statuses on which reconciliation is a no-op
RECONCILED_STATUSES = frozenset(
    [PaymentStatus.SUCCESS, PaymentStatus.FAILED, PaymentStatus.REFUNDED]
)

# Statuses a payer may delete from their history
DELETABLE_STATUSES = frozenset([PaymentStatus.CREATED, PaymentStatus.FAILED])


class PaymentType(models.TextChoices):
    """What a payment pays for. Each type maps to exactly one side effect."""

    LOAN_FEE = "LOAN_FEE", "Loan Fee"
    MEMBERSHIP = "MEMBERSHIP", "Membership"
    DOCUMENT_FEE = "DOCUMENT_FEE", "Document Fee"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for gateway webhook deliveries.

    State Flow:
        PENDING → PROCESSED (handler reconciled the payment)
        PENDING → IGNORED (event type has no handler)
        PENDING → FAILED (handler raised; the gateway still got a 200)
    """

    PENDING = "pending", "Pending"
    PROCESSED = "processed", "Processed"
    IGNORED = "ignored", "Ignored"
    FAILED = "failed", "Failed"


__all__ = [
    "DELETABLE_STATUSES",
    "PaymentStatus",
    "PaymentType",
    "RECONCILED_STATUSES",
    "WebhookEventStatus",
]
