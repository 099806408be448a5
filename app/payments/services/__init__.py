"""
Payment services for coordinating payment operations.

This module provides:
- ReconciliationService: Verifies gateway transactions and records payments
- PaymentHistoryService: Payment history for invoice owners
- PaymentLinkService: Creates Flutterwave hosted checkout links

Usage:
    from payments.services import ReconciliationService

    result = ReconciliationService().verify_payment(transaction_id, invoice_id)

    from payments.services import PaymentLinkService

    result = PaymentLinkService().create_payment_link(request.user, invoice_id)
"""

from payments.services.history_service import PaymentHistoryService
from payments.services.link_service import (
    PaymentLinkService,
    build_reference,
    parse_reference,
)
from payments.services.reconciliation_service import (
    ACTION_ALREADY_PROCESSED,
    ACTION_INVOICE_ALREADY_PAID,
    ACTION_NO_ACTION,
    ACTION_PAYMENT_COMPLETED,
    ReconciliationService,
)

__all__ = [
    "ACTION_ALREADY_PROCESSED",
    "ACTION_INVOICE_ALREADY_PAID",
    "ACTION_NO_ACTION",
    "ACTION_PAYMENT_COMPLETED",
    "PaymentHistoryService",
    "PaymentLinkService",
    "ReconciliationService",
    "build_reference",
    "parse_reference",
]
