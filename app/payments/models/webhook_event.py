"""
WebhookEvent model for gateway webhook tracking.

Every signed delivery is stored before any processing happens. The
unique provider_event_id makes redeliveries of the same charge
notification collapse onto one row, and the stored payload lets the
retry task reprocess failures without asking the gateway to resend.

Usage:
    from payments.models import WebhookEvent

    event, created = WebhookEvent.objects.get_or_create(
        provider_event_id="charge.completed:285959875",
        defaults={"event_type": "charge.completed", "payload": payload},
    )
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import PaymentProvider, WebhookEventStatus

MAX_PROCESSING_ATTEMPTS = 5


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Tracks gateway webhook deliveries for idempotent processing.

    Processing Flow:
        1. Delivery arrives, signature verified
        2. Insert/get WebhookEvent with provider_event_id
        3. If exists and PROCESSED -> return 200 (duplicate)
        4. Queue process_webhook_event
        5. Task sets PROCESSING, dispatches to handler
        6. Task sets PROCESSED (with result_action) or FAILED
        7. FAILED events are picked up by retry_failed_webhooks

    Fields:
        provider: Gateway that sent the event
        provider_event_id: Unique delivery key (event type + gateway id)
        event_type: Gateway event name (e.g. 'charge.completed')
        payload: Full JSON body
        status: Processing status
        result_action: What the handler did (payment_completed, no_action...)
        processed_at: When processing succeeded
        error_message: Error details if processing failed
        retry_count: Number of processing attempts
    """

    # ==========================================================================
    # Event Identification
    # ==========================================================================

    provider = models.CharField(
        max_length=20,
        choices=PaymentProvider.choices,
        default=PaymentProvider.FLUTTERWAVE,
        help_text="Gateway that sent the webhook",
    )

    provider_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique delivery key - unique constraint for idempotency",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Gateway event type (e.g., 'charge.completed')",
    )

    payload = models.JSONField(
        help_text="Full webhook payload (JSON)",
    )

    # ==========================================================================
    # Processing Status
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
        help_text="Current processing status",
    )

    result_action = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Outcome reported by the handler",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When event was successfully processed",
    )

    # ==========================================================================
    # Error Handling
    # ==========================================================================

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error message if processing failed",
    )

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"]),
            models.Index(fields=["status", "retry_count"]),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.provider_event_id}, {self.event_type})"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def can_retry(self) -> bool:
        """Failed and still below the attempt limit."""
        return (
            self.status == WebhookEventStatus.FAILED
            and self.retry_count < MAX_PROCESSING_ATTEMPTS
        )

    @property
    def data(self) -> dict:
        """The nested ``data`` object of the payload (empty dict if absent)."""
        data = self.payload.get("data") if isinstance(self.payload, dict) else None
        return data if isinstance(data, dict) else {}

    # ==========================================================================
    # Helper Methods (caller must save)
    # ==========================================================================

    def mark_processing(self) -> None:
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self, action: str = "") -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.result_action = action
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message
