"""
URL configuration for the Django application.

URL Structure:
    /                                          - ReDoc API documentation
    /admin/                                    - Django admin interface
    /health/                                   - Health check endpoint (load balancers, Docker)
    /schema/                                   - OpenAPI schema (YAML)
    /api/auth/token/                           - Obtain JWT pair (email + password)
    /api/auth/token/refresh/                   - Refresh JWT access token
    /api/payments/                             - Payment endpoints
        verify                                 - Verify and reconcile a transaction (public)
        history                                - Payment history for the caller's invoices
        link                                   - Create a hosted checkout link
    /api/webhooks/flutterwave                  - Flutterwave webhook (POST) and liveness (GET)
    /api/public/invoices/{id}/payment-status   - Public invoice payment status

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check
from payments.webhooks.views import flutterwave_webhook

# =============================================================================
# API Routes
# =============================================================================
# All routes here are prefixed with /api/ automatically
api_patterns = [
    # Authentication (JWT)
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Payments
    path("payments/", include("payments.urls")),
    # Webhooks
    path("webhooks/flutterwave", flutterwave_webhook, name="flutterwave_webhook"),
    # Public invoice pages
    path("public/invoices/", include("invoices.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API
    path("api/", include(api_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "PayRush Admin"
admin.site.site_title = "PayRush Admin Portal"
admin.site.index_title = "Invoices and Payments"
