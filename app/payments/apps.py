"""
Payments app configuration.

This app provides Flutterwave payment reconciliation:
- Transaction verification and payment recording
- Webhook intake and async processing
- Payment history and hosted checkout links
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
