"""
Payment domain models.

- Payment: A reconciled gateway transaction, unique per reference
- WebhookEvent: Inbound gateway webhook tracked for idempotent processing
"""

from payments.models.payment import Payment
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "Payment",
    "WebhookEvent",
]
