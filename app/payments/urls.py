"""
URL configuration for the payments app.

Routes:
    - POST verify - Verify and reconcile a Flutterwave transaction
    - GET history - Payment history for the caller's invoices
    - POST link - Create a hosted checkout link

All routes are prefixed with /api/payments/ when included in the main URLconf.
The webhook endpoint lives at /api/webhooks/flutterwave (see config/urls.py).

Usage:
    # In config/urls.py
    path("api/payments/", include("payments.urls")),
"""

from django.urls import path

from payments.views import PaymentHistoryView, PaymentLinkView, VerifyPaymentView

app_name = "payments"

urlpatterns = [
    path("verify", VerifyPaymentView.as_view(), name="verify"),
    path("history", PaymentHistoryView.as_view(), name="history"),
    path("link", PaymentLinkView.as_view(), name="link"),
]
