"""
Payments app for Cashfree PG.

This app handles:
- Payment intents for loan fees, document fees and memberships
- Reconciliation of gateway outcomes from client verification and webhooks
- Side effects on memberships and loan applications, reversed on refund
- Staff refunds and the hosted checkout return redirect

Related apps:
    - authentication: Payer (User) and JWT tokens
    - loans: LoanApplication.payment_status flipped by fee payments
    - memberships: Membership activated or renewed by membership payments

Usage:
    from payments.services import PaymentIntentService, PaymentReconciler

    result = PaymentIntentService().initiate_raw(owner_id=user.id, payment_type="MEMBERSHIP")
    PaymentReconciler().reconcile(result.gateway_order_id, "SUCCESS", gateway_payment_id="5114910576212")
"""
