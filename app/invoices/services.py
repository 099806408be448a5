"""
Invoice service layer.

Lookups and status changes that payment code performs on invoices go
through InvoiceService so "not found", "already paid" and "transition not
allowed" are always reported with the same error types.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from django_fsm import TransitionNotAllowed

from core.exceptions import ValidationError
from core.services import BaseService, ServiceResult
from invoices.exceptions import (
    InvalidStateTransitionError,
    InvoiceAlreadyPaidError,
    InvoiceNotFoundError,
)
from invoices.models import Invoice
from invoices.states import InvoiceStatus

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet


RECENT_PAYMENTS_LIMIT = 5


def parse_invoice_id(invoice_id: Any) -> uuid.UUID:
    """
    Coerce an invoice identifier to a UUID.

    Raises:
        ValidationError: If the value is not a well-formed UUID
    """
    if isinstance(invoice_id, uuid.UUID):
        return invoice_id
    try:
        return uuid.UUID(str(invoice_id).strip())
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(
            "Invalid invoice identifier",
            error_code="INVALID_INVOICE_ID",
            details={"invoice_id": str(invoice_id)},
        )


class InvoiceService(BaseService):
    """Invoice lookups and status changes used by the payment workflow."""

    @classmethod
    def get_invoice(
        cls,
        invoice_id: Any,
        owner=None,
        queryset: QuerySet[Invoice] | None = None,
    ) -> Invoice:
        """
        Fetch a single invoice.

        Args:
            invoice_id: Invoice UUID (string or UUID)
            owner: Restrict the lookup to invoices owned by this user
            queryset: Base queryset (e.g. select_for_update())

        Raises:
            ValidationError: Malformed identifier
            InvoiceNotFoundError: No matching invoice
        """
        pk = parse_invoice_id(invoice_id)
        qs = queryset if queryset is not None else Invoice.objects.all()
        if owner is not None:
            qs = qs.filter(owner=owner)
        try:
            return qs.get(pk=pk)
        except Invoice.DoesNotExist:
            raise InvoiceNotFoundError(
                "Invoice not found",
                details={"invoice_id": str(pk)},
            )

    @classmethod
    def mark_paid(cls, invoice: Invoice) -> Invoice:
        """
        Move an invoice to Paid and persist the change.

        Raises:
            InvoiceAlreadyPaidError: Invoice is already Paid
            InvalidStateTransitionError: Invoice is Cancelled (or otherwise
                not payable)
        """
        if invoice.status == InvoiceStatus.PAID:
            raise InvoiceAlreadyPaidError(
                "Invoice is already paid",
                details={"invoice_id": str(invoice.id)},
            )
        try:
            invoice.mark_paid()
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot mark invoice paid from '{invoice.status}' state",
                details={
                    "invoice_id": str(invoice.id),
                    "current_state": invoice.status,
                    "target_state": InvoiceStatus.PAID,
                    "transition": "mark_paid",
                },
            )
        invoice.save(update_fields=["status", "paid_at", "updated_at"])

        cls.get_logger().info(
            "Invoice marked paid",
            extra={"invoice_id": str(invoice.id)},
        )
        return invoice

    @classmethod
    def get_payment_status(cls, invoice_id: Any) -> ServiceResult[dict]:
        """
        Public payment status of an invoice.

        Returns the invoice status with its most recent payments, newest
        first. Safe to expose on shared invoice pages: no customer or
        owner details are included.
        """
        try:
            invoice = cls.get_invoice(invoice_id)
        except (ValidationError, InvoiceNotFoundError) as e:
            return cls.handle_exception(
                e,
                "Payment status lookup failed",
                log_level=logging.INFO,
                extra={"invoice_id": str(invoice_id)},
            )

        recent_payments = [
            {
                "id": str(payment.id),
                "amount": payment.amount,
                "status": payment.status,
                "created_at": payment.created_at,
                "provider": payment.provider,
            }
            for payment in invoice.payments.order_by("-created_at")[:RECENT_PAYMENTS_LIMIT]
        ]

        return ServiceResult.success(
            {
                "invoice_id": str(invoice.id),
                "status": invoice.status,
                "amount": invoice.amount,
                "currency": invoice.currency,
                "recent_payments": recent_payments,
            }
        )
