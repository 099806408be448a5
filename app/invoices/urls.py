"""
URL configuration for public invoice endpoints.

Included under /api/public/invoices/ in config/urls.py.
"""

from django.urls import path

from invoices.views import InvoicePaymentStatusView

app_name = "invoices"

urlpatterns = [
    path(
        "<uuid:invoice_id>/payment-status",
        InvoicePaymentStatusView.as_view(),
        name="payment-status",
    ),
]
