"""
Celery tasks for payment processing.

This module provides async tasks for:
- Processing Flutterwave webhook events
- Retrying failed (or never queued) webhook events
- Periodic cleanup of old/stuck events
- Repairing invoices left unpaid after a recorded payment

Usage:
    from payments.tasks import process_webhook_event

    # Queue a webhook for async processing
    process_webhook_event.delay(webhook_event_id)
"""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from celery import shared_task
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from invoices.exceptions import InvalidStateTransitionError, InvoiceAlreadyPaidError
from invoices.models import Invoice
from invoices.services import InvoiceService
from invoices.states import InvoiceStatus
from payments.models import WebhookEvent
from payments.state_machines import PaymentStatus, WebhookEventStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_WEBHOOK_RETRIES = 5
STUCK_PROCESSING_THRESHOLD_MINUTES = 30
STALE_PENDING_THRESHOLD_MINUTES = 10
RETRY_BATCH_SIZE = 100
REPAIR_BATCH_SIZE = 100


# =============================================================================
# Webhook Processing Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_WEBHOOK_RETRIES},
    acks_late=True,
)
def process_webhook_event(self, webhook_event_id: str) -> dict:
    """
    Process a Flutterwave webhook event asynchronously.

    This task:
    1. Loads the WebhookEvent by ID
    2. Checks if already processed (idempotency)
    3. Marks as processing
    4. Dispatches to appropriate handler
    5. Marks as processed or failed

    The handler owns its database transaction; the reconciliation engine
    must commit before its reference lock is released.

    Args:
        webhook_event_id: UUID of the WebhookEvent to process

    Returns:
        Dict with processing result status

    Raises:
        Exception: Re-raised to trigger Celery retry mechanism
    """
    # Import here to avoid circular imports
    from payments.webhooks.handlers import dispatch_webhook

    if isinstance(webhook_event_id, str):
        webhook_event_id = UUID(webhook_event_id)

    logger.info(
        "Processing webhook event",
        extra={"webhook_event_id": str(webhook_event_id)},
    )

    try:
        webhook_event = WebhookEvent.objects.get(id=webhook_event_id)
    except WebhookEvent.DoesNotExist:
        logger.error(
            "WebhookEvent not found",
            extra={"webhook_event_id": str(webhook_event_id)},
        )
        return {"status": "not_found", "webhook_event_id": str(webhook_event_id)}

    if webhook_event.status == WebhookEventStatus.PROCESSED:
        logger.info(
            "WebhookEvent already processed, skipping",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "provider_event_id": webhook_event.provider_event_id,
            },
        )
        return {
            "status": "already_processed",
            "webhook_event_id": str(webhook_event_id),
        }

    webhook_event.mark_processing()
    webhook_event.save()

    logger.info(
        f"Dispatching webhook: {webhook_event.event_type}",
        extra={
            "webhook_event_id": str(webhook_event_id),
            "provider_event_id": webhook_event.provider_event_id,
            "event_type": webhook_event.event_type,
            "retry_count": webhook_event.retry_count,
        },
    )

    try:
        result = dispatch_webhook(webhook_event)

        if result.success:
            action = (result.data or {}).get("action", "")
            webhook_event.mark_processed(action)
            webhook_event.save()
            logger.info(
                "Webhook processed successfully",
                extra={
                    "webhook_event_id": str(webhook_event_id),
                    "provider_event_id": webhook_event.provider_event_id,
                    "action": action,
                },
            )
            return {
                "status": "processed",
                "webhook_event_id": str(webhook_event_id),
                "provider_event_id": webhook_event.provider_event_id,
                "action": action,
            }
        else:
            error_msg = result.error or "Handler returned failure"
            if result.error_code:
                error_msg = f"[{result.error_code}] {error_msg}"
            webhook_event.mark_failed(error_msg)
            webhook_event.save()
            logger.warning(
                f"Webhook handler failed: {error_msg}",
                extra={
                    "webhook_event_id": str(webhook_event_id),
                    "provider_event_id": webhook_event.provider_event_id,
                    "error_code": result.error_code,
                },
            )
            return {
                "status": "handler_failed",
                "webhook_event_id": str(webhook_event_id),
                "error": error_msg,
                "error_code": result.error_code,
            }

    except Exception as e:
        error_msg = f"{type(e).__name__}: {str(e)}"
        webhook_event.mark_failed(error_msg)
        webhook_event.save()

        logger.exception(
            "Webhook processing failed with exception",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "provider_event_id": webhook_event.provider_event_id,
                "error": error_msg,
            },
        )

        # Re-raise to trigger Celery retry
        raise


@shared_task
def retry_failed_webhooks() -> dict:
    """
    Periodic task to retry webhook events.

    Re-queues failed events that haven't exceeded max retries, plus
    pending events whose original enqueue apparently never happened.

    Scheduled via celery-beat every 5 minutes.

    Returns:
        Dict with count of webhooks queued for retry
    """
    stale_cutoff = timezone.now() - timedelta(minutes=STALE_PENDING_THRESHOLD_MINUTES)

    retryable = WebhookEvent.objects.filter(
        Q(status=WebhookEventStatus.FAILED, retry_count__lt=MAX_WEBHOOK_RETRIES)
        | Q(status=WebhookEventStatus.PENDING, created_at__lt=stale_cutoff)
    ).order_by("created_at")[:RETRY_BATCH_SIZE]

    queued_count = 0
    for webhook in retryable:
        try:
            process_webhook_event.delay(str(webhook.id))
            queued_count += 1
            logger.info(
                "Queued webhook for retry",
                extra={
                    "webhook_event_id": str(webhook.id),
                    "provider_event_id": webhook.provider_event_id,
                    "status": webhook.status,
                    "retry_count": webhook.retry_count,
                },
            )
        except Exception as e:
            logger.error(
                f"Failed to queue webhook for retry: {e}",
                extra={"webhook_event_id": str(webhook.id)},
            )

    logger.info(
        f"Queued {queued_count} webhooks for retry",
        extra={"queued_count": queued_count},
    )

    return {"queued_count": queued_count}


@shared_task
def cleanup_stuck_webhooks() -> dict:
    """
    Periodic task to reset stuck webhooks.

    Finds webhooks that have been in PROCESSING status for too long
    and resets them to FAILED so they can be retried. This handles
    cases where the worker crashed during processing.

    Returns:
        Dict with count of webhooks reset
    """
    threshold = timezone.now() - timedelta(minutes=STUCK_PROCESSING_THRESHOLD_MINUTES)

    stuck_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSING,
        updated_at__lt=threshold,
    )

    reset_count = 0
    for webhook in stuck_webhooks:
        stuck_since = webhook.updated_at
        webhook.mark_failed("Processing timed out - reset for retry")
        webhook.save()
        reset_count += 1
        logger.warning(
            "Reset stuck webhook",
            extra={
                "webhook_event_id": str(webhook.id),
                "provider_event_id": webhook.provider_event_id,
                "stuck_since": stuck_since.isoformat(),
            },
        )

    if reset_count > 0:
        logger.info(
            f"Reset {reset_count} stuck webhooks",
            extra={"reset_count": reset_count},
        )

    return {"reset_count": reset_count}


@shared_task
def cleanup_old_webhooks(days: int = 90) -> dict:
    """
    Periodic task to clean up old processed webhook events.

    Failed events are kept for debugging.

    Args:
        days: Delete processed webhooks older than this many days

    Returns:
        Dict with count of webhooks deleted
    """
    cutoff = timezone.now() - timedelta(days=days)

    deleted_count, _ = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSED,
        processed_at__lt=cutoff,
    ).delete()

    if deleted_count > 0:
        logger.info(
            f"Deleted {deleted_count} old webhook events",
            extra={
                "deleted_count": deleted_count,
                "cutoff_date": cutoff.isoformat(),
            },
        )

    return {"deleted_count": deleted_count}


# =============================================================================
# Invoice Repair
# =============================================================================


@shared_task
def repair_unpaid_invoices() -> dict:
    """
    Advance invoices that have a successful payment but are not Paid.

    A reconciliation that recorded the payment but failed to update the
    invoice leaves exactly this state behind. Cancelled invoices are
    never reopened; they are logged for manual review.

    Returns:
        Dict with counts of repaired and skipped invoices
    """
    candidates = (
        Invoice.objects.filter(payments__status=PaymentStatus.SUCCESSFUL)
        .exclude(status=InvoiceStatus.PAID)
        .distinct()
        .order_by("created_at")
        .values_list("id", flat=True)[:REPAIR_BATCH_SIZE]
    )

    stats = {"repaired": 0, "skipped_cancelled": 0, "skipped": 0}

    for invoice_id in list(candidates):
        with transaction.atomic():
            invoice = Invoice.objects.select_for_update().get(pk=invoice_id)

            if invoice.status == InvoiceStatus.CANCELLED:
                stats["skipped_cancelled"] += 1
                logger.warning(
                    "Cancelled invoice has a successful payment; needs manual review",
                    extra={"invoice_id": str(invoice_id)},
                )
                continue

            try:
                InvoiceService.mark_paid(invoice)
            except (InvoiceAlreadyPaidError, InvalidStateTransitionError) as e:
                stats["skipped"] += 1
                logger.info(
                    f"Invoice repair skipped: {e.message}",
                    extra={"invoice_id": str(invoice_id)},
                )
                continue

        stats["repaired"] += 1
        logger.warning(
            "Repaired invoice left unpaid after a recorded payment",
            extra={"invoice_id": str(invoice_id)},
        )

    if any(stats.values()):
        logger.info("Invoice repair finished", extra=stats)

    return stats
