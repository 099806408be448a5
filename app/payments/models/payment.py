"""
Payment model: durable evidence that a gateway transaction was reconciled.

One row per verified transaction. The provider-supplied transaction
reference (tx_ref) is unique at the database level; that constraint is
the idempotency boundary of the reconciliation workflow, and the engine
translates a violation into AlreadyProcessedError.

Usage:
    from payments.models import Payment

    payment = Payment.objects.filter(reference=tx_ref).first()
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import PaymentProvider, PaymentStatus


class Payment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A reconciled payment against an invoice.

    Fields:
        invoice: Invoice this payment settles
        amount: Amount charged, as reported by the gateway
        currency: Currency charged, as reported by the gateway
        status: Canonical payment status (always "successful" when written)
        reference: Provider transaction reference (tx_ref), unique
        provider: Gateway that produced the payment
        provider_transaction_id: Gateway transaction id (Flutterwave "id")
        payment_method: Payment type reported by the gateway (card, mobilemoney...)
        customer_email: Payer email from the gateway
        customer_name: Payer name from the gateway

    Note:
        Rows are never updated or deleted by the reconciliation workflow.
    """

    invoice = models.ForeignKey(
        "invoices.Invoice",
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Invoice settled by this payment",
    )

    # ==========================================================================
    # Amount
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount charged",
    )

    currency = models.CharField(
        max_length=3,
        help_text="ISO 4217 currency code of the charge",
    )

    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.SUCCESSFUL,
        db_index=True,
        help_text="Canonical payment status",
    )

    # ==========================================================================
    # Provider Integration
    # ==========================================================================

    reference = models.CharField(
        max_length=255,
        unique=True,
        help_text="Provider transaction reference (tx_ref) - unique for idempotency",
    )

    provider = models.CharField(
        max_length=20,
        choices=PaymentProvider.choices,
        default=PaymentProvider.FLUTTERWAVE,
        help_text="Gateway that processed the payment",
    )

    provider_transaction_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Gateway transaction id",
    )

    payment_method = models.CharField(
        max_length=50,
        default="card",
        help_text="Payment type reported by the gateway",
    )

    # ==========================================================================
    # Payer
    # ==========================================================================

    customer_email = models.EmailField(
        blank=True,
        default="",
        help_text="Payer email reported by the gateway",
    )

    customer_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Payer name reported by the gateway",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment"
        verbose_name_plural = "Payments"
        indexes = [
            models.Index(fields=["invoice", "created_at"]),
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"Payment({self.reference}, {self.amount} {self.currency})"
