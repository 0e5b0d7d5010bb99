"""
Payment-specific exceptions for payment operations.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentNotFoundError - Payment lookup by id or gateway order id failed
    ├── PaymentVerificationError - Gateway has no payment attempt for the order yet
    ├── PaymentValidationError - Request rejected before any gateway call
    │   ├── InvalidPaymentTypeError
    │   └── MissingLoanApplicationIdError
    ├── ConfigNotFoundError - No active price for the payment type (404)
    └── PaymentProcessingError - Payment gateway failures
        └── GatewayError - Base for all gateway errors (is_retryable)
            ├── GatewayInvalidRequestError - Rejected parameters (permanent)
            ├── GatewayAuthenticationError - Bad credentials (permanent)
            ├── GatewayRateLimitError - Rate limited (transient)
            ├── GatewayUnavailableError - Network error or 5xx (transient)
            ├── GatewayTimeoutError - Request timed out (transient)
            ├── GatewaySessionError - Order/session creation failed
            ├── GatewayVerificationError - Fetching payment attempts failed
            └── GatewayRefundError - Refund creation failed

    LoanApplicationNotFoundError, UserNotFoundError (inherit NotFoundError)

    DuplicateActiveMembershipError, PaymentNotEligibleForRefundError,
    PaymentDeletionNotAllowedError, InvalidStateTransitionError,
    StaleRecordError, LockAcquisitionError
    (inherit ConflictError)

The operation-level gateway errors (session, verification, refund) wrap the
adapter's categorised errors. They keep the gateway's message verbatim and
carry the original error code and retryability in details.

Usage:
    from payments.exceptions import GatewayError, GatewaySessionError

    try:
        order = adapter.create_order(params)
    except GatewayError as e:
        raise GatewaySessionError.wrap(e) from e
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import status

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    All payment-specific exceptions inherit from this class,
    which itself inherits from BaseApplicationError for
    consistent API error responses.
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentNotFoundError(PaymentError):
    """
    Raised when a payment cannot be found.

    Also raised when the payment exists but belongs to another user, so
    callers cannot probe for other users' order ids.
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"
    http_status: int = status.HTTP_404_NOT_FOUND


class PaymentVerificationError(PaymentError):
    """
    Raised when the gateway reports no payment attempt for an order.

    The payment stays CREATED; the client may verify again later or wait
    for the webhook.
    """

    default_error_code: str = "PAYMENT_VERIFICATION_FAILED"


class PaymentValidationError(PaymentError, ValidationError):
    """
    Raised when payment validation fails.

    Use for:
    - Invalid membership plan
    - Invalid refund amount
    - Business rule violations detected before any gateway call
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class InvalidPaymentTypeError(PaymentValidationError):
    """Payment type is not LOAN_FEE, MEMBERSHIP or DOCUMENT_FEE."""

    default_error_code: str = "INVALID_PAYMENT_TYPE"


class MissingLoanApplicationIdError(PaymentValidationError):
    """A LOAN_FEE or DOCUMENT_FEE intent did not name a loan application."""

    default_error_code: str = "MISSING_LOAN_APPLICATION_ID"


class ConfigNotFoundError(PaymentError):
    """No active PaymentConfig prices this payment type (and plan)."""

    default_error_code: str = "PAYMENT_CONFIG_NOT_FOUND"
    http_status: int = status.HTTP_404_NOT_FOUND


class LoanApplicationNotFoundError(NotFoundError):
    """The loan application referenced by a fee intent does not exist."""

    default_error_code: str = "LOAN_APPLICATION_NOT_FOUND"


class UserNotFoundError(NotFoundError):
    """The payment owner does not exist."""

    default_error_code: str = "USER_NOT_FOUND"


class PaymentProcessingError(PaymentError, ExternalServiceError):
    """Raised when payment processing at the gateway fails."""

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"
    http_status: int = status.HTTP_502_BAD_GATEWAY


# =============================================================================
# Gateway Exceptions
# =============================================================================


class GatewayError(PaymentProcessingError):
    """
    Base exception for all payment gateway errors.

    Attributes:
        gateway_code: The gateway's own error code, when it sent one
        is_retryable: Whether the same call may succeed if repeated

    Example:
        try:
            adapter.create_refund(params)
        except GatewayError as e:
            if e.is_retryable:
                ...  # ask the operator to retry later
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        gateway_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if gateway_code:
            details["gateway_code"] = gateway_code
        super().__init__(message, error_code=error_code, details=details)
        self.gateway_code = gateway_code

    @classmethod
    def wrap(cls, error: GatewayError) -> GatewayError:
        """
        Re-raise a categorised adapter error as this operation-level error.

        The message is passed through unchanged.
        """
        wrapped = cls(
            error.message,
            gateway_code=error.gateway_code,
            details={**error.details, "cause": error.error_code},
        )
        wrapped.is_retryable = error.is_retryable
        return wrapped


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class GatewayInvalidRequestError(GatewayError):
    """
    The gateway rejected the request parameters (4xx other than 401/403/429).

    Examples: duplicate order id, refund larger than the captured amount,
    unknown order.
    """

    default_error_code: str = "GATEWAY_INVALID_REQUEST"
    is_retryable: bool = False


class GatewayAuthenticationError(GatewayError):
    """
    The gateway rejected our credentials.

    This is an operational issue (wrong app id or secret for the
    environment); retrying will not help.
    """

    default_error_code: str = "GATEWAY_AUTHENTICATION_FAILED"
    is_retryable: bool = False


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with backoff)
# -----------------------------------------------------------------------------


class GatewayRateLimitError(GatewayError):
    """Rate limited by the gateway (HTTP 429)."""

    default_error_code: str = "GATEWAY_RATE_LIMITED"
    is_retryable: bool = True


class GatewayUnavailableError(GatewayError):
    """
    Gateway is temporarily unavailable.

    Covers connection failures, DNS/TLS errors and 5xx responses.
    """

    default_error_code: str = "GATEWAY_UNAVAILABLE"
    is_retryable: bool = True


class GatewayTimeoutError(GatewayError):
    """
    Gateway call timed out.

    IMPORTANT: The operation may have succeeded on the gateway's side.
    Order and refund ids are generated by us, so a retry with the same
    id is rejected as a duplicate instead of being applied twice.
    """

    default_error_code: str = "GATEWAY_TIMEOUT"
    is_retryable: bool = True


# -----------------------------------------------------------------------------
# Operation-level Errors (surfaced to callers)
# -----------------------------------------------------------------------------


class GatewaySessionError(GatewayError):
    """Opening a payment order/session failed. No Payment row was written."""

    default_error_code: str = "GATEWAY_SESSION_ERROR"


class GatewayVerificationError(GatewayError):
    """Fetching payment attempts for an order failed. No mutation occurred."""

    default_error_code: str = "GATEWAY_VERIFICATION_ERROR"


class GatewayRefundError(GatewayError):
    """Creating a refund failed. The payment is still SUCCESS."""

    default_error_code: str = "GATEWAY_REFUND_ERROR"


# =============================================================================
# Conflict Exceptions
# =============================================================================


class DuplicateActiveMembershipError(ConflictError):
    """The user already holds an ACTIVE membership."""

    default_error_code: str = "DUPLICATE_ACTIVE_MEMBERSHIP"


class PaymentNotEligibleForRefundError(ConflictError):
    """
    Raised when refunding a payment that is not SUCCESS.

    Covers already-refunded payments: refunds are not retryable at this
    layer, callers must check the status first.
    """

    default_error_code: str = "PAYMENT_NOT_ELIGIBLE_FOR_REFUND"


class PaymentDeletionNotAllowedError(ConflictError):
    """SUCCESS and REFUNDED payments are kept for audit and never deleted."""

    default_error_code: str = "PAYMENT_DELETION_NOT_ALLOWED"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when django-fsm refuses a transition from the current status.

    Wraps django_fsm.TransitionNotAllowed at service boundaries.
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class StaleRecordError(ConflictError):
    """
    Raised when a status compare-and-swap loses against another writer.

    django-fsm's ConcurrentTransition is translated to this exception
    where the losing caller cannot simply return the winner's result.
    """

    default_error_code: str = "STALE_RECORD"


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    This exception indicates that another process holds the lock
    and it couldn't be acquired within the timeout period.
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Payment domain
    "PaymentError",
    "PaymentNotFoundError",
    "PaymentVerificationError",
    "PaymentValidationError",
    "InvalidPaymentTypeError",
    "MissingLoanApplicationIdError",
    "ConfigNotFoundError",
    "LoanApplicationNotFoundError",
    "UserNotFoundError",
    "PaymentProcessingError",
    # Gateway
    "GatewayError",
    "GatewayInvalidRequestError",
    "GatewayAuthenticationError",
    "GatewayRateLimitError",
    "GatewayUnavailableError",
    "GatewayTimeoutError",
    "GatewaySessionError",
    "GatewayVerificationError",
    "GatewayRefundError",
    # Conflicts
    "DuplicateActiveMembershipError",
    "PaymentNotEligibleForRefundError",
    "PaymentDeletionNotAllowedError",
    "InvalidStateTransitionError",
    "StaleRecordError",
    "LockAcquisitionError",
]
