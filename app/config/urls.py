"""
URL configuration for the loan back office.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - JWT endpoints
        token/                     - Obtain access/refresh pair (email + password)
        token/refresh/             - Refresh an access token
    /api/v1/payments/              - Payment endpoints
        initiate/                  - Open a gateway order (POST)
        verify/                    - Verify after checkout (POST)
        history/                   - Payment history (GET)
        return/                    - Hosted checkout return redirect (GET)
        {id}/                      - Payment detail (GET) / delete (DELETE)
        {id}/refund/               - Refund a payment, staff only (POST)
        webhooks/cashfree/         - Cashfree webhook endpoint (POST)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication (simplejwt)
    path("auth/", include("authentication.urls")),
    # Payments
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Loan Back Office"
admin.site.site_title = "Back Office"
admin.site.index_title = "Payments, memberships and loan applications"
