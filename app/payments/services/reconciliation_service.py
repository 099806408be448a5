"""
Reconciliation service: turns a gateway transaction into a recorded payment.

This module provides the ReconciliationService which is the single engine
behind both entry points:

    - verify_payment(): called by the checkout redirect with a Flutterwave
      transaction id and the invoice being paid
    - reconcile_webhook_charge(): called by the webhook task with a
      charge.completed payload

Reconciliation Steps (strict order, first failure wins):
    1. Validate input
    2. Verify the transaction with the gateway (never trust the caller)
    3. Require a successful charge
    4. Load the invoice
    5. Match amount (exact Decimal) and currency
    6. Reject a reference that was already recorded
    7. Insert the payment
    8. Advance the invoice to Paid
    9. Return the payment summary

Steps 6-8 run under a per-reference DistributedLock and in one database
transaction with the invoice row locked, so the insert and the invoice
update commit or roll back together. The unique constraint on
Payment.reference backs up the lock.

Usage:
    from payments.services import ReconciliationService

    result = ReconciliationService().verify_payment(transaction_id, invoice_id)
    if result.success:
        payment_id = result.data["payment_id"]
    elif result.error_code == "ALREADY_PROCESSED":
        payment_id = result.details["payment_id"]
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import DatabaseError, IntegrityError, transaction

from core.exceptions import BaseApplicationError, ValidationError
from core.services import BaseService, ServiceResult
from invoices.exceptions import (
    InvalidStateTransitionError,
    InvoiceAlreadyPaidError,
    InvoiceNotFoundError,
)
from invoices.models import Invoice
from invoices.services import InvoiceService, parse_invoice_id
from invoices.states import InvoiceStatus
from payments.adapters import get_gateway
from payments.exceptions import (
    AlreadyProcessedError,
    AmountMismatchError,
    CurrencyMismatchError,
    GatewayError,
    GatewayRejectedError,
    InvalidRequestError,
    LockAcquisitionError,
    PaymentNotSuccessfulError,
    PersistenceFailedError,
    VerificationFailedError,
)
from payments.locks import reference_lock
from payments.models import Payment
from payments.services.link_service import parse_reference
from payments.state_machines import PaymentProvider, PaymentStatus

if TYPE_CHECKING:
    from typing import Any
    from uuid import UUID

    from payments.adapters import FlutterwaveAdapter, RemoteTransaction


# =============================================================================
# Constants
# =============================================================================

CHARGE_COMPLETED_EVENT = "charge.completed"

ACTION_NO_ACTION = "no_action"
ACTION_PAYMENT_COMPLETED = "payment_completed"
ACTION_ALREADY_PROCESSED = "payment_already_processed"
ACTION_INVOICE_ALREADY_PAID = "invoice_already_paid"

AMOUNT_QUANTUM = Decimal("0.01")

TRANSACTION_ID_PATTERN = re.compile(r"\d+", re.ASCII)


class ReconciliationService(BaseService):
    """
    Verifies gateway transactions and records them against invoices.

    The gateway adapter is injected; by default the process-wide adapter
    from get_gateway() is used.

    Usage:
        service = ReconciliationService(gateway=FlutterwaveAdapter.from_settings())
        result = service.verify_payment("285959875", invoice_id)
    """

    def __init__(self, gateway: FlutterwaveAdapter | None = None) -> None:
        self.gateway = gateway or get_gateway()

    # =========================================================================
    # Entry Points
    # =========================================================================

    def verify_payment(
        self,
        transaction_id: Any,
        invoice_id: Any,
        trace_id: str | None = None,
    ) -> ServiceResult[dict]:
        """
        Verify a transaction with the gateway and reconcile it with an invoice.

        Args:
            transaction_id: Flutterwave transaction id
            invoice_id: Invoice UUID the payer was paying
            trace_id: Optional trace ID for log correlation

        Returns:
            ServiceResult whose data holds payment_id, transaction_id,
            amount, currency, status, reference, invoice_id and
            invoice_status. On failure, error_code identifies the step
            that failed and details carry its context.
        """
        log_context = {
            "transaction_id": str(transaction_id),
            "invoice_id": str(invoice_id),
            "trace_id": trace_id,
        }

        try:
            invoice_pk = self._validate_input(transaction_id, invoice_id)
            remote = self._fetch_transaction(transaction_id, trace_id)
            log_context["tx_ref"] = remote.tx_ref
            data = self._reconcile(remote, invoice_pk, log_context)
        except BaseApplicationError as e:
            return self.handle_exception(
                e,
                "Payment verification failed",
                log_level=self._log_level_for(e),
                extra=log_context,
            )

        self.get_logger().info(
            "Payment reconciled",
            extra={**log_context, "payment_id": data["payment_id"]},
        )
        return ServiceResult.success(data)

    def reconcile_webhook_charge(self, payload: dict) -> ServiceResult[dict]:
        """
        Reconcile a webhook delivery.

        Only successful charge.completed events are acted upon. The
        charge is re-verified with the gateway before anything is
        written; the webhook body itself is never trusted for amounts.

        Returns:
            ServiceResult with data["action"] set to one of
            "no_action", "payment_completed", "payment_already_processed"
            (redelivery of a recorded reference) or "invoice_already_paid"
            (a different charge for a paid invoice, left for manual
            follow-up). Fails with
            INVOICE_REFERENCE_UNRESOLVED when the invoice cannot be
            identified, or with the verify_payment error codes.
        """
        payload = payload if isinstance(payload, dict) else {}
        event = payload.get("event")
        data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
        tx_ref = data.get("tx_ref")

        if (
            event != CHARGE_COMPLETED_EVENT
            or data.get("status") != PaymentStatus.SUCCESSFUL
        ):
            self.get_logger().info(
                "Webhook event requires no action",
                extra={"event": event, "status": data.get("status"), "tx_ref": tx_ref},
            )
            return ServiceResult.success({"action": ACTION_NO_ACTION, "event": event})

        invoice_id = self.resolve_invoice_id(data)
        if invoice_id is None:
            self.get_logger().warning(
                "Could not resolve invoice for webhook charge",
                extra={"tx_ref": tx_ref, "transaction_id": data.get("id")},
            )
            return ServiceResult.failure(
                "Could not resolve invoice from webhook charge",
                error_code="INVOICE_REFERENCE_UNRESOLVED",
                details={"tx_ref": tx_ref},
            )

        result = self.verify_payment(data.get("id"), invoice_id, trace_id=tx_ref)

        if result.success:
            return ServiceResult.success({"action": ACTION_PAYMENT_COMPLETED, **result.data})

        if result.error_code == AlreadyProcessedError.default_error_code:
            return ServiceResult.success(
                {
                    "action": ACTION_ALREADY_PROCESSED,
                    "invoice_id": str(invoice_id),
                    **(result.details or {}),
                }
            )

        if result.error_code == InvoiceAlreadyPaidError.default_error_code:
            # A second charge under another reference; no Payment row records it
            self.get_logger().warning(
                "Charge received for an invoice that is already paid",
                extra={
                    "invoice_id": str(invoice_id),
                    "tx_ref": tx_ref,
                    "transaction_id": data.get("id"),
                },
            )
            return ServiceResult.success(
                {
                    "action": ACTION_INVOICE_ALREADY_PAID,
                    "invoice_id": str(invoice_id),
                    "tx_ref": tx_ref,
                    "transaction_id": str(data.get("id")),
                }
            )

        return result

    @staticmethod
    def resolve_invoice_id(data: dict) -> str | None:
        """
        Invoice id for a webhook charge.

        meta.invoice_id wins; the PAYRUSH_<id>_<ts> reference is the fallback.
        """
        meta = data.get("meta")
        if isinstance(meta, dict) and meta.get("invoice_id"):
            return str(meta["invoice_id"])
        return parse_reference(data.get("tx_ref"))

    # =========================================================================
    # Steps
    # =========================================================================

    @staticmethod
    def _validate_input(transaction_id: Any, invoice_id: Any) -> UUID:
        """Step 1."""
        missing = [
            name
            for name, value in (
                ("transaction_id", transaction_id),
                ("invoice_id", invoice_id),
            )
            if value is None or not str(value).strip()
        ]
        if missing:
            raise InvalidRequestError(
                "transaction_id and invoice_id are required",
                details={"missing_fields": missing},
            )

        if not TRANSACTION_ID_PATTERN.fullmatch(str(transaction_id).strip()):
            raise InvalidRequestError(
                "transaction_id must be a numeric Flutterwave id",
                details={"transaction_id": str(transaction_id)[:64]},
            )

        try:
            return parse_invoice_id(invoice_id)
        except ValidationError as e:
            raise InvalidRequestError(e.message, details=e.details)

    def _fetch_transaction(
        self,
        transaction_id: Any,
        trace_id: str | None,
    ) -> RemoteTransaction:
        """Steps 2 and 3."""
        try:
            remote = self.gateway.verify_transaction(
                str(transaction_id).strip(), trace_id=trace_id
            )
        except GatewayError as e:
            raise VerificationFailedError(
                f"Payment verification failed: {e.message}",
                cause=e,
            )

        if not remote.is_successful:
            raise PaymentNotSuccessfulError(
                "Payment was not successful",
                details={"status": remote.status, "transaction_id": remote.id},
            )
        return remote

    def _reconcile(
        self,
        remote: RemoteTransaction,
        invoice_pk: UUID,
        log_context: dict[str, Any],
    ) -> dict[str, Any]:
        """Steps 4 to 9."""
        invoice = InvoiceService.get_invoice(invoice_pk)
        self._check_terms(remote, invoice)

        with reference_lock(remote.tx_ref):
            with transaction.atomic():
                # Row lock first: a caller that waited here sees the winner's payment
                invoice = InvoiceService.get_invoice(
                    invoice_pk, queryset=Invoice.objects.select_for_update()
                )
                self._check_duplicate(remote.tx_ref)
                self._check_payable(invoice)

                payment = self._insert_payment(remote, invoice, log_context)
                self._advance_invoice(invoice, log_context)

        return {
            "payment_id": str(payment.id),
            "transaction_id": remote.id,
            "amount": str(payment.amount),
            "currency": payment.currency,
            "status": payment.status,
            "reference": payment.reference,
            "invoice_id": str(invoice.id),
            "invoice_status": invoice.status,
        }

    @staticmethod
    def _check_terms(remote: RemoteTransaction, invoice: Invoice) -> None:
        """Step 5. Exact comparison; trailing zeros do not matter."""
        if Decimal(str(remote.amount)) != invoice.amount:
            raise AmountMismatchError(
                "Payment amount mismatch",
                details={
                    "paid": str(remote.amount),
                    "expected": str(invoice.amount),
                },
            )
        if remote.currency.upper() != invoice.currency.upper():
            raise CurrencyMismatchError(
                "Payment currency mismatch",
                details={
                    "paid_currency": remote.currency,
                    "expected_currency": invoice.currency,
                },
            )

    @staticmethod
    def _check_duplicate(reference: str) -> None:
        """Step 6."""
        existing_id = (
            Payment.objects.filter(reference=reference)
            .values_list("id", flat=True)
            .first()
        )
        if existing_id is not None:
            raise AlreadyProcessedError(
                "Payment already processed",
                payment_id=existing_id,
                details={"reference": reference},
            )

    @staticmethod
    def _check_payable(invoice: Invoice) -> None:
        if invoice.status == InvoiceStatus.PAID:
            raise InvoiceAlreadyPaidError(
                "Invoice is already paid",
                details={"invoice_id": str(invoice.id)},
            )
        if not invoice.can_accept_payment:
            raise InvalidStateTransitionError(
                f"Cannot accept payment for invoice in '{invoice.status}' state",
                details={
                    "invoice_id": str(invoice.id),
                    "current_state": invoice.status,
                    "target_state": InvoiceStatus.PAID,
                },
            )

    def _insert_payment(
        self,
        remote: RemoteTransaction,
        invoice: Invoice,
        log_context: dict[str, Any],
    ) -> Payment:
        """
        Step 7.

        The insert runs in a savepoint so a unique violation on reference
        leaves the outer transaction usable for the follow-up lookup.
        """
        try:
            with transaction.atomic():
                return Payment.objects.create(
                    invoice=invoice,
                    amount=remote.amount.quantize(AMOUNT_QUANTUM),
                    currency=remote.currency.upper(),
                    status=PaymentStatus.SUCCESSFUL,
                    reference=remote.tx_ref,
                    provider=PaymentProvider.FLUTTERWAVE,
                    provider_transaction_id=remote.id,
                    payment_method=remote.payment_type or "card",
                    customer_email=remote.customer_email,
                    customer_name=remote.customer_name,
                )
        except IntegrityError:
            existing_id = (
                Payment.objects.filter(reference=remote.tx_ref)
                .values_list("id", flat=True)
                .first()
            )
            if existing_id is None:
                raise PersistenceFailedError(
                    "Failed to record payment",
                    stage=PersistenceFailedError.STAGE_PAYMENT_INSERT,
                    details={"reference": remote.tx_ref},
                )
            self.get_logger().info(
                "Concurrent reconciliation recorded this reference first",
                extra={**log_context, "payment_id": str(existing_id)},
            )
            raise AlreadyProcessedError(
                "Payment already processed",
                payment_id=existing_id,
                details={"reference": remote.tx_ref},
            )
        except DatabaseError as e:
            raise PersistenceFailedError(
                "Failed to record payment",
                stage=PersistenceFailedError.STAGE_PAYMENT_INSERT,
                details={"reference": remote.tx_ref, "db_error": type(e).__name__},
            )

    @staticmethod
    def _advance_invoice(invoice: Invoice, log_context: dict[str, Any]) -> None:
        """Step 8."""
        try:
            InvoiceService.mark_paid(invoice)
        except DatabaseError as e:
            raise PersistenceFailedError(
                "Invoice could not be marked paid; payment rolled back",
                stage=PersistenceFailedError.STAGE_INVOICE_UPDATE,
                details={
                    "invoice_id": str(invoice.id),
                    "reference": log_context.get("tx_ref"),
                    "db_error": type(e).__name__,
                },
            )

    # =========================================================================
    # Logging
    # =========================================================================

    @staticmethod
    def _log_level_for(exc: BaseApplicationError) -> int:
        """Expected outcomes stay below ERROR; partial writes are CRITICAL."""
        if isinstance(exc, AlreadyProcessedError):
            return logging.INFO
        if isinstance(exc, PersistenceFailedError):
            if exc.stage == PersistenceFailedError.STAGE_INVOICE_UPDATE:
                return logging.CRITICAL
            return logging.ERROR
        if isinstance(exc, VerificationFailedError):
            if isinstance(exc.cause, GatewayRejectedError):
                return logging.WARNING
            return logging.ERROR
        if isinstance(
            exc,
            (
                InvoiceNotFoundError,
                InvoiceAlreadyPaidError,
                InvalidRequestError,
                AmountMismatchError,
                CurrencyMismatchError,
                PaymentNotSuccessfulError,
                InvalidStateTransitionError,
                LockAcquisitionError,
            ),
        ):
            return logging.WARNING
        return logging.ERROR
