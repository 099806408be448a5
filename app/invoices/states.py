"""
Invoice status enum used with django-fsm.

State Flow:
    Draft → Sent → Overdue
    Draft / Sent / Overdue → Paid
    Draft / Sent / Overdue → Cancelled

Terminal states: Paid, Cancelled

Values are capitalized because they are shown verbatim in the
dashboard and returned as-is by the API.
"""

from django.db import models


class InvoiceStatus(models.TextChoices):
    """Lifecycle states of an invoice."""

    DRAFT = "Draft", "Draft"
    SENT = "Sent", "Sent"
    PAID = "Paid", "Paid"
    OVERDUE = "Overdue", "Overdue"
    CANCELLED = "Cancelled", "Cancelled"


PAYABLE_STATUSES = (
    InvoiceStatus.DRAFT,
    InvoiceStatus.SENT,
    InvoiceStatus.OVERDUE,
)
