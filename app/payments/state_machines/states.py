"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration.

Payment Status:
    A payment row is only ever written once a charge has been verified,
    so the canonical vocabulary has a single value in practice. Older
    webhook code wrote "completed"; normalize() folds it into
    "successful" when reading stored rows or history filters. Gateway
    statuses are never normalized: only "successful" is accepted.

WebhookEvent Status:
    pending → processing → processed
    pending → processing → failed → processing (retry)
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """Canonical status of a recorded payment."""

    SUCCESSFUL = "successful", "Successful"

    @classmethod
    def normalize(cls, value: str | None) -> str | None:
        """
        Map provider and legacy spellings onto the canonical value.

        Returns None for anything that is not a successful status.
        """
        if not value:
            return None
        value = str(value).strip().lower()
        if value in (cls.SUCCESSFUL, "completed", "success"):
            return cls.SUCCESSFUL
        return None


class PaymentProvider(models.TextChoices):
    """Gateways that can produce payment records."""

    FLUTTERWAVE = "flutterwave", "Flutterwave"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED (can retry)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
