"""
Payment adapters for external services.

All payment gateway calls should go through these adapters to ensure
consistent error handling, timeouts, and observability.

Usage:
    from payments.adapters import CashfreeAdapter, CreateOrderParams

    adapter = CashfreeAdapter(GatewayConfig.from_settings())
    order = adapter.create_order(CreateOrderParams(...))
"""

from payments.adapters.cashfree_adapter import (
    CashfreeAdapter,
    CreateOrderParams,
    CreateRefundParams,
    GatewayPayment,
    OrderResult,
    RefundResult,
)

__all__ = [
    "CashfreeAdapter",
    "CreateOrderParams",
    "CreateRefundParams",
    "GatewayPayment",
    "OrderResult",
    "RefundResult",
]
