"""
Webhook endpoint views for Flutterwave.

This module provides the HTTP endpoint for receiving Flutterwave webhooks.
The view:
1. Verifies the verif-hash signature (before reading the body)
2. Creates/retrieves the WebhookEvent record (idempotent)
3. Queues the event for async processing
4. Returns immediately

A GET on the same URL is a liveness probe for monitoring.

Usage:
    # In urls.py
    from payments.webhooks.views import flutterwave_webhook

    urlpatterns = [
        path("api/webhooks/flutterwave", flutterwave_webhook, name="flutterwave_webhook"),
    ]
"""

from __future__ import annotations

import hashlib
import json
import logging

from django.db import DatabaseError
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from payments.adapters import FlutterwaveAdapter, get_gateway
from payments.exceptions import SignatureInvalidError
from payments.models import WebhookEvent
from payments.state_machines import PaymentProvider, WebhookEventStatus

logger = logging.getLogger(__name__)


def build_provider_event_id(payload: dict, body: bytes) -> str:
    """
    Delivery key for a webhook payload.

    Event name plus the gateway's data.id; a hash of the raw body when the
    payload carries no id.
    """
    event = payload.get("event") or "unknown"
    data = payload.get("data")
    object_id = data.get("id") if isinstance(data, dict) else None
    if object_id not in (None, ""):
        return f"{event}:{object_id}"
    return f"{event}:sha256:{hashlib.sha256(body).hexdigest()}"


@csrf_exempt
@require_http_methods(["GET", "POST"])
def flutterwave_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and queue Flutterwave webhook events.

    Security:
    - verif-hash must equal FLUTTERWAVE_WEBHOOK_HASH (fails closed when
      the secret is not configured)
    - CSRF exemption required for external webhooks

    Idempotency:
    - WebhookEvent.provider_event_id is unique
    - Redeliveries of a processed event return 200 without reprocessing

    Returns:
        HttpResponse with status:
        - 200: Event accepted (new, duplicate or ignored)
        - 400: Body is not a JSON object with an event name
        - 401: Missing or invalid signature
        - 500: Event could not be stored
    """
    if request.method == "GET":
        return JsonResponse(
            {
                "service": "flutterwave-webhook",
                "status": "operational",
                "timestamp": timezone.now().isoformat(),
            }
        )

    # Step 1: Verify signature
    try:
        get_gateway().verify_webhook_signature(
            request.headers.get(FlutterwaveAdapter.SIGNATURE_HEADER)
        )
    except SignatureInvalidError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": e.message},
        )
        return HttpResponse("Invalid signature", status=401)

    # Step 2: Parse payload
    body = request.body
    try:
        payload = json.loads(body)
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
        return HttpResponse("Invalid payload", status=400)

    if not isinstance(payload, dict) or not payload.get("event"):
        logger.warning("Webhook missing required fields")
        return HttpResponse("Invalid event", status=400)

    event_type = str(payload["event"])
    provider_event_id = build_provider_event_id(payload, body)

    logger.info(
        f"Received Flutterwave webhook: {event_type}",
        extra={
            "provider_event_id": provider_event_id,
            "event_type": event_type,
        },
    )

    # Step 3: Create/get WebhookEvent (idempotent)
    try:
        webhook_event, created = WebhookEvent.objects.get_or_create(
            provider_event_id=provider_event_id,
            defaults={
                "provider": PaymentProvider.FLUTTERWAVE,
                "event_type": event_type,
                "payload": payload,
                "status": WebhookEventStatus.PENDING,
            },
        )
    except DatabaseError:
        logger.error(
            "Failed to store webhook event",
            extra={"provider_event_id": provider_event_id},
            exc_info=True,
        )
        return HttpResponse("Storage error", status=500)

    # Step 4: If already processed, return success
    if not created:
        if webhook_event.status == WebhookEventStatus.PROCESSED:
            logger.info(
                "Webhook already processed, returning success",
                extra={"provider_event_id": provider_event_id},
            )
            return HttpResponse("Already processed", status=200)

        logger.info(
            f"Webhook already exists with status: {webhook_event.status}",
            extra={"provider_event_id": provider_event_id},
        )

    # Step 5: Queue for async processing
    try:
        from payments.tasks import process_webhook_event

        process_webhook_event.delay(str(webhook_event.id))
        logger.info(
            "Webhook queued for processing",
            extra={
                "provider_event_id": provider_event_id,
                "webhook_event_id": str(webhook_event.id),
            },
        )
    except Exception as e:
        # Stored as pending; retry_failed_webhooks picks it up
        logger.error(
            f"Failed to queue webhook: {type(e).__name__}",
            extra={"provider_event_id": provider_event_id},
            exc_info=True,
        )

    return HttpResponse("Accepted", status=200)
