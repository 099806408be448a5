"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key

Invoices and payments are addressed from public URLs (payment links,
payment-status pages) so their identifiers must not be guessable or
reveal record counts.
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Fields:
        id: UUIDField as primary key (auto-generated)

    Usage:
        class Payment(UUIDPrimaryKeyMixin, BaseModel):
            reference = models.CharField(max_length=100, unique=True)

        payment = Payment.objects.create(reference="PAYRUSH_..._1700000000")
        payment.id  # UUID('550e8400-e29b-41d4-a716-446655440000')
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
