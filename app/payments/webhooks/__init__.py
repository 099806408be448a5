"""
Webhook handling for payment events from Flutterwave.

Webhooks are verified, stored idempotently, and processed asynchronously
via Celery tasks.

Usage:
    # In urls.py
    from payments.webhooks.views import flutterwave_webhook

    urlpatterns = [
        path("api/webhooks/flutterwave", flutterwave_webhook, name="flutterwave_webhook"),
    ]
"""

from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.views import flutterwave_webhook

__all__ = [
    "dispatch_webhook",
    "flutterwave_webhook",
    "register_handler",
]
