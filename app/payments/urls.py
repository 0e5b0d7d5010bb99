"""
URL configuration for the payments app.

Routes:
    - POST initiate/ - Open a payment
    - POST verify/ - Verify after checkout
    - GET history/ - Current user's payments
    - GET/DELETE <uuid>/ - Payment status / deletion
    - POST <uuid>/refund/ - Staff refund
    - GET return/ - Hosted checkout return redirect
    - POST webhooks/cashfree/ - Cashfree webhook endpoint

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments import views
from payments.webhooks.views import cashfree_webhook

app_name = "payments"

urlpatterns = [
    path("initiate/", views.InitiatePaymentView.as_view(), name="initiate"),
    path("verify/", views.VerifyPaymentView.as_view(), name="verify"),
    path("history/", views.PaymentHistoryView.as_view(), name="history"),
    path("return/", views.PaymentReturnView.as_view(), name="return"),
    path("<uuid:payment_id>/", views.PaymentDetailView.as_view(), name="detail"),
    path("<uuid:payment_id>/refund/", views.RefundPaymentView.as_view(), name="refund"),
    # Webhook endpoints
    path("webhooks/cashfree/", cashfree_webhook, name="cashfree_webhook"),
]
