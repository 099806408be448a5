"""
Webhook event handlers for Flutterwave events.

This module provides a handler registry and the handler for
charge.completed, the only Flutterwave event that moves money onto an
invoice.

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    # Register a custom handler
    @register_handler("transfer.completed")
    def handle_transfer_completed(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    # Dispatch an event to its handler
    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import Callable

from core.services import ServiceResult
from payments.models import WebhookEvent
from payments.services import ACTION_NO_ACTION, ReconciliationService

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Args:
        event_type: The Flutterwave event name (e.g., "charge.completed")

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to the appropriate handler.

    Unknown event types are acknowledged with action "no_action" so the
    gateway never sees an error for events we do not use.

    Returns:
        ServiceResult from the handler. On success, data is a dict with
        at least an "action" key.
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"provider_event_id": webhook_event.provider_event_id},
        )
        return ServiceResult.success({"action": ACTION_NO_ACTION})

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"provider_event_id": webhook_event.provider_event_id},
    )

    return handler(webhook_event)


# =============================================================================
# Charge Handlers
# =============================================================================


@register_handler("charge.completed")
def handle_charge_completed(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Handle a completed charge notification.

    The payload only identifies the charge; ReconciliationService
    re-verifies it with the gateway and records the payment.
    """
    data = webhook_event.data
    logger.info(
        "Processing charge.completed",
        extra={
            "provider_event_id": webhook_event.provider_event_id,
            "transaction_id": data.get("id"),
            "tx_ref": data.get("tx_ref"),
            "status": data.get("status"),
        },
    )
    return ReconciliationService().reconcile_webhook_charge(webhook_event.payload)
