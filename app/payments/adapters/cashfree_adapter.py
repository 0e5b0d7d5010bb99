"""
Cashfree PG adapter for payment operations.

This module provides the CashfreeAdapter class which encapsulates all
Cashfree API interactions. All gateway calls should go through this
adapter to ensure consistent error handling, timeouts, and observability.

Features:
- Timeout and connection retries from the injected GatewayConfig
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Webhook signature verification (HMAC-SHA256, base64)

Usage:
    from payments.adapters import CashfreeAdapter, CreateOrderParams
    from payments.conf import GatewayConfig

    adapter = CashfreeAdapter(GatewayConfig.from_settings())

    order = adapter.create_order(
        CreateOrderParams(
            order_id="order_1729230000000_12_a1b2c3",
            amount=Decimal("299.00"),
            currency="INR",
            customer_id="customer_12",
            customer_phone="+919876543210",
        )
    )
    payments = adapter.fetch_payments_for_order(order.order_id)
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import httpx

from payments.exceptions import (
    GatewayAuthenticationError,
    GatewayError,
    GatewayInvalidRequestError,
    GatewayRateLimitError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)

if TYPE_CHECKING:
    from payments.conf import GatewayConfig


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreateOrderParams:
    """
    Parameters for creating a Cashfree order.

    Attributes:
        order_id: Our order id, unique per call
        amount: Order amount in major currency units
        currency: ISO 4217 currency code
        customer_id: Gateway customer reference
        customer_phone: Phone with country prefix (required by Cashfree)
        customer_name: Payer name (optional)
        customer_email: Payer email (optional)
        return_url: Checkout redirect (defaults to the configured one)
        order_note: Free text shown in the Cashfree dashboard
        order_tags: Key-value tags attached to the order
    """

    order_id: str
    amount: Decimal
    currency: str
    customer_id: str
    customer_phone: str
    customer_name: str | None = None
    customer_email: str | None = None
    return_url: str | None = None
    order_note: str | None = None
    order_tags: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.order_id:
            raise ValueError("order_id is required")
        if not self.currency:
            raise ValueError("currency is required")


@dataclass
class OrderResult:
    """
    Result from Cashfree order creation.

    Attributes:
        order_id: Order id echoed by the gateway
        cf_order_id: Cashfree's internal order id
        payment_session_id: Session handed to the hosted checkout
        order_status: ACTIVE, PAID, EXPIRED, ...
        amount: Order amount
        currency: Currency code
        raw_response: Full response body (for debugging)
    """

    order_id: str
    cf_order_id: str | None
    payment_session_id: str
    order_status: str
    amount: Decimal
    currency: str
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class GatewayPayment:
    """
    One payment attempt reported by the gateway for an order.

    Attributes:
        cf_payment_id: Gateway payment id
        payment_status: SUCCESS, FAILED, PENDING, USER_DROPPED, ...
        payment_message: Gateway's human-readable message
        amount: Attempted amount
        payment_time: Gateway timestamp string
    """

    cf_payment_id: str | None
    payment_status: str
    payment_message: str | None = None
    amount: Decimal | None = None
    payment_time: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class CreateRefundParams:
    """
    Parameters for creating a Cashfree refund.

    Attributes:
        order_id: Order being refunded
        refund_id: Our refund id; a repeat with the same id is rejected
        amount: Amount to refund
        note: Refund note (our refund reason)
    """

    order_id: str
    refund_id: str
    amount: Decimal
    note: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.refund_id:
            raise ValueError("refund_id is required")


@dataclass
class RefundResult:
    """
    Result from Cashfree refund creation.

    Attributes:
        refund_id: Our refund id echoed by the gateway
        cf_refund_id: Cashfree's refund id
        refund_status: PENDING, SUCCESS, ...
        amount: Refunded amount
        raw_response: Full response body
    """

    refund_id: str
    cf_refund_id: str | None
    refund_status: str
    amount: Decimal
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Cashfree Adapter
# =============================================================================


class CashfreeAdapter:
    """
    Adapter for Cashfree PG REST operations.

    Instances hold an httpx.Client configured from the GatewayConfig.
    Tests pass their own client (with httpx.MockTransport) instead.

    Features:
    - Timeout on every call
    - Connection retries through the httpx transport
    - Automatic error translation to domain exceptions
    - Structured logging with timing metrics
    """

    def __init__(self, config: GatewayConfig, client: httpx.Client | None = None) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> httpx.Client:
        # Created on first API call; signature checks never need it
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                transport=httpx.HTTPTransport(retries=self.config.max_retries),
            )
        return self._client

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    def _headers(self) -> dict[str, str]:
        return {
            "x-client-id": self.config.app_id,
            "x-client-secret": self.config.secret_key,
            "x-api-version": self.config.api_version,
            "Accept": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        log_context: dict[str, Any],
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded body, translating failures."""
        logger = self.get_logger()
        start_time = time.time()
        logger.info("Starting Cashfree operation", extra=log_context)

        try:
            response = self.client.request(method, path, json=json, headers=self._headers())
            response.raise_for_status()
            body = response.json()
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_gateway_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Cashfree operation completed",
            extra={**log_context, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        return body

    # =========================================================================
    # Core Operations
    # =========================================================================

    def create_order(self, params: CreateOrderParams) -> OrderResult:
        """
        Create an order and open a hosted checkout session.

        Args:
            params: CreateOrderParams

        Returns:
            OrderResult with the payment_session_id

        Raises:
            GatewayInvalidRequestError: Duplicate order id or bad parameters
            GatewayAuthenticationError: Wrong credentials
            GatewayUnavailableError / GatewayTimeoutError / GatewayRateLimitError
        """
        customer_details: dict[str, Any] = {
            "customer_id": params.customer_id,
            "customer_phone": params.customer_phone,
        }
        if params.customer_name:
            customer_details["customer_name"] = params.customer_name
        if params.customer_email:
            customer_details["customer_email"] = params.customer_email

        order_meta: dict[str, Any] = {}
        return_url = params.return_url or self.config.return_url
        if return_url:
            order_meta["return_url"] = return_url
        if self.config.notify_url:
            order_meta["notify_url"] = self.config.notify_url

        body: dict[str, Any] = {
            "order_id": params.order_id,
            "order_amount": float(params.amount),
            "order_currency": params.currency,
            "customer_details": customer_details,
        }
        if order_meta:
            body["order_meta"] = order_meta
        if params.order_note:
            body["order_note"] = params.order_note
        if params.order_tags:
            body["order_tags"] = {key: str(value) for key, value in params.order_tags.items()}

        data = self._request(
            "POST",
            "/orders",
            {"operation": "create_order", "order_id": params.order_id, "amount": str(params.amount)},
            json=body,
        )

        return OrderResult(
            order_id=data.get("order_id", params.order_id),
            cf_order_id=_optional_str(data.get("cf_order_id")),
            payment_session_id=data.get("payment_session_id") or "",
            order_status=data.get("order_status") or "ACTIVE",
            amount=Decimal(str(data.get("order_amount", params.amount))),
            currency=data.get("order_currency", params.currency),
            raw_response=data,
        )

    def fetch_payments_for_order(self, order_id: str) -> list[GatewayPayment]:
        """
        Fetch payment attempts for an order, most recent first.

        Returns an empty list when the payer has not attempted payment yet.
        """
        data = self._request(
            "GET",
            f"/orders/{order_id}/payments",
            {"operation": "fetch_payments_for_order", "order_id": order_id},
        )

        payments = [
            GatewayPayment(
                cf_payment_id=_optional_str(item.get("cf_payment_id")),
                payment_status=(item.get("payment_status") or "").upper(),
                payment_message=item.get("payment_message"),
                amount=_optional_decimal(item.get("payment_amount")),
                payment_time=item.get("payment_time") or item.get("payment_completion_time"),
                raw_response=item,
            )
            for item in (data or [])
        ]
        payments.sort(key=lambda payment: payment.payment_time or "", reverse=True)
        return payments

    def create_refund(self, params: CreateRefundParams) -> RefundResult:
        """
        Create a refund for a paid order.

        Args:
            params: CreateRefundParams

        Returns:
            RefundResult with refund details

        Raises:
            GatewayInvalidRequestError: Refund not possible (amount, state, duplicate id)
        """
        body: dict[str, Any] = {
            "refund_amount": float(params.amount),
            "refund_id": params.refund_id,
        }
        if params.note:
            body["refund_note"] = params.note

        data = self._request(
            "POST",
            f"/orders/{params.order_id}/refunds",
            {
                "operation": "create_refund",
                "order_id": params.order_id,
                "refund_id": params.refund_id,
                "amount": str(params.amount),
            },
            json=body,
        )

        return RefundResult(
            refund_id=data.get("refund_id", params.refund_id),
            cf_refund_id=_optional_str(data.get("cf_refund_id")),
            refund_status=data.get("refund_status") or "PENDING",
            amount=Decimal(str(data.get("refund_amount", params.amount))),
            raw_response=data,
        )

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    def compute_webhook_signature(self, payload: bytes, timestamp: str) -> str:
        message = timestamp.encode() + payload
        digest = hmac.new(self.config.signing_secret.encode(), message, hashlib.sha256).digest()
        return base64.b64encode(digest).decode()

    def verify_webhook_signature(self, payload: bytes, signature: str, timestamp: str) -> bool:
        """
        Check a webhook delivery against its x-webhook-signature header.

        Args:
            payload: Raw request body bytes
            signature: x-webhook-signature header value
            timestamp: x-webhook-timestamp header value

        Returns:
            True if the signature matches
        """
        if not signature or not timestamp:
            return False
        expected = self.compute_webhook_signature(payload, timestamp)
        return hmac.compare_digest(expected, signature)

    # =========================================================================
    # Error Handling
    # =========================================================================

    def _handle_gateway_error(
        self,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate httpx exceptions and error responses to domain exceptions.

        Raises:
            GatewayTimeoutError: Request timed out
            GatewayUnavailableError: Network error or 5xx
            GatewayRateLimitError: 429
            GatewayAuthenticationError: 401/403
            GatewayInvalidRequestError: Other 4xx
            GatewayError: Undecodable response
        """
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, httpx.TimeoutException):
            logger.error("Cashfree request timed out", extra=log_context)
            raise GatewayTimeoutError(
                "Payment gateway timed out. Please retry.",
                gateway_code="timeout",
            )

        elif isinstance(error, httpx.HTTPStatusError):
            response = error.response
            message, code = _error_fields(response)
            log_context = {**log_context, "status_code": response.status_code, "gateway_code": code}

            if response.status_code == 429:
                logger.warning("Rate limited by Cashfree", extra=log_context)
                raise GatewayRateLimitError(message, gateway_code=code or "rate_limit")

            if response.status_code in (401, 403):
                logger.error("Cashfree rejected credentials", extra=log_context)
                raise GatewayAuthenticationError(message, gateway_code=code)

            if response.status_code >= 500:
                logger.error("Cashfree server error", extra=log_context)
                raise GatewayUnavailableError(message, gateway_code=code)

            logger.error("Invalid request to Cashfree", extra=log_context)
            raise GatewayInvalidRequestError(message, gateway_code=code)

        elif isinstance(error, httpx.TransportError):
            logger.error("Connection error to Cashfree", extra=log_context, exc_info=True)
            raise GatewayUnavailableError(
                "Could not connect to the payment gateway. Please retry.",
                gateway_code="api_connection_error",
            )

        elif isinstance(error, ValueError):
            # Body was not JSON
            logger.error("Undecodable Cashfree response", extra=log_context, exc_info=True)
            raise GatewayError(
                "Payment gateway returned an invalid response",
                gateway_code="invalid_response",
            )


def _error_fields(response: httpx.Response) -> tuple[str, str | None]:
    """Extract (message, code) from a Cashfree error body."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or f"Payment gateway error (HTTP {response.status_code})"
    return message, body.get("code")


def _optional_str(value: Any) -> str | None:
    return None if value in (None, "") else str(value)


def _optional_decimal(value: Any) -> Decimal | None:
    return None if value in (None, "") else Decimal(str(value))
