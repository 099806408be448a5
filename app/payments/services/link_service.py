"""
Hosted checkout link creation.

Also owns the structured transaction reference format:

    PAYRUSH_<invoice id hex>_<unix timestamp>

The reference is what Flutterwave echoes back as tx_ref, so the webhook
path can fall back to it when meta.invoice_id is absent.
"""

from __future__ import annotations

import logging
import re
import time
from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import ValidationError
from core.services import BaseService, ServiceResult
from invoices.exceptions import (
    InvalidStateTransitionError,
    InvoiceAlreadyPaidError,
    InvoiceNotFoundError,
)
from invoices.services import InvoiceService
from invoices.states import InvoiceStatus
from payments.adapters import PaymentLinkParams, get_gateway
from payments.currencies import payment_options_for
from payments.exceptions import GatewayError

if TYPE_CHECKING:
    from typing import Any

    from payments.adapters import FlutterwaveAdapter


REFERENCE_PREFIX = "PAYRUSH"

_REFERENCE_PATTERN = re.compile(
    rf"^{REFERENCE_PREFIX}_([^_]+)_(\d+)$",
    re.IGNORECASE,
)


def build_reference(invoice_id: Any, timestamp: int | None = None) -> str:
    """Build a tx_ref for an invoice. Invoice ids are rendered as UUID hex."""
    if timestamp is None:
        timestamp = int(time.time())
    invoice_part = getattr(invoice_id, "hex", None) or str(invoice_id)
    return f"{REFERENCE_PREFIX}_{invoice_part}_{timestamp}"


def parse_reference(reference: str | None) -> str | None:
    """
    Extract the invoice id from a structured tx_ref.

    Returns None when the reference does not follow the PAYRUSH format.

    Example:
        >>> parse_reference("payrush_3f2a..._1700000000")
        '3f2a...'
    """
    if not reference:
        return None
    match = _REFERENCE_PATTERN.match(str(reference).strip())
    return match.group(1) if match else None


class PaymentLinkService(BaseService):
    """
    Creates Flutterwave hosted checkout links for invoices.

    Usage:
        result = PaymentLinkService().create_payment_link(request.user, invoice_id)
        if result.success:
            redirect(result.data["link"])
    """

    def __init__(self, gateway: FlutterwaveAdapter | None = None) -> None:
        self.gateway = gateway or get_gateway()

    def create_payment_link(
        self,
        user,
        invoice_id: Any,
        redirect_url: str | None = None,
    ) -> ServiceResult[dict]:
        """
        Create a checkout link for an invoice owned by ``user``.

        Returns:
            ServiceResult with {link, tx_ref, invoice_id}. Failure codes:
            INVALID_INVOICE_ID, INVOICE_NOT_FOUND, INVOICE_ALREADY_PAID,
            INVALID_STATE_TRANSITION, CUSTOMER_EMAIL_REQUIRED and the
            gateway error codes.
        """
        log_context = {"invoice_id": str(invoice_id), "user_id": str(user.pk)}

        try:
            invoice = InvoiceService.get_invoice(invoice_id, owner=user)

            if invoice.status == InvoiceStatus.PAID:
                raise InvoiceAlreadyPaidError(
                    "Invoice is already paid",
                    details={"invoice_id": str(invoice.id)},
                )
            if invoice.status == InvoiceStatus.CANCELLED:
                raise InvalidStateTransitionError(
                    "Cancelled invoices cannot be paid",
                    details={
                        "invoice_id": str(invoice.id),
                        "current_state": invoice.status,
                    },
                )
            if not invoice.customer_email:
                raise ValidationError(
                    "Invoice has no customer email",
                    error_code="CUSTOMER_EMAIL_REQUIRED",
                    details={"invoice_id": str(invoice.id)},
                )
        except (
            ValidationError,
            InvoiceNotFoundError,
            InvoiceAlreadyPaidError,
            InvalidStateTransitionError,
        ) as e:
            return self.handle_exception(
                e, "Payment link not created", log_level=logging.INFO, extra=log_context
            )

        tx_ref = build_reference(invoice.id)
        params = PaymentLinkParams(
            tx_ref=tx_ref,
            amount=invoice.amount,
            currency=invoice.currency,
            redirect_url=redirect_url or settings.FLUTTERWAVE_REDIRECT_URL,
            customer_email=invoice.customer_email,
            customer_name=invoice.customer_name,
            invoice_id=str(invoice.id),
            user_id=str(user.pk),
            description=invoice.description or f"Invoice {invoice.invoice_number}".strip(),
            payment_options=payment_options_for(invoice.currency),
        )

        try:
            link = self.gateway.create_payment_link(params)
        except GatewayError as e:
            return self.handle_exception(
                e,
                "Payment link creation failed",
                log_level=logging.WARNING,
                extra={**log_context, "tx_ref": tx_ref},
            )

        self.get_logger().info(
            "Payment link created",
            extra={**log_context, "tx_ref": tx_ref},
        )
        return ServiceResult.success(
            {
                "link": link.link,
                "tx_ref": tx_ref,
                "invoice_id": str(invoice.id),
            }
        )
