"""
Tests for payments app.

This package contains test modules for:
- test_models.py: Payment transitions, PaymentConfig, WebhookEvent
- test_intents.py / test_intent_service.py: Payment initiation
- test_reconciler.py: Verify and reconcile, including lost races
- test_effects.py: Membership and loan-fee side effects
- test_refund_service.py: Refunds and their locking
- test_cashfree_adapter.py: Gateway HTTP client
- test_views.py: API endpoint tests

Usage:
    pytest payments/tests/
    pytest payments/tests/test_reconciler.py
"""
