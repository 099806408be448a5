"""
Invoice model.

An invoice is a billable record owned by a business (User) and addressed
to a customer. Payments reconciled through the gateway are matched
against its amount and currency and move it to Paid.

Usage:
    from invoices.models import Invoice

    invoice = Invoice.objects.create(
        owner=user,
        customer_name="Jane Customer",
        customer_email="jane@example.com",
        amount=Decimal("100.00"),
        currency="USD",
    )
    invoice.send()
    invoice.save(update_fields=["status", "updated_at"])
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from invoices.exceptions import InvoiceTermsLockedError
from invoices.states import PAYABLE_STATUSES, InvoiceStatus
from payments.currencies import Currency, normalize_currency


class Invoice(UUIDPrimaryKeyMixin, BaseModel):
    """
    Billable record with a monetary amount and lifecycle status.

    Fields:
        owner: Business user that issued the invoice
        invoice_number: Optional human-facing number (e.g. INV-0042)
        customer_name: Customer display name
        customer_email: Customer email address
        amount: Amount due, two decimal places
        currency: ISO 4217 code (see payments.currencies)
        status: Current state (managed by FSM)
        due_date: Optional due date
        description: Free-text description
        paid_at: When the invoice reached Paid

    Invariants:
        - status only changes through the transitions below
        - amount and currency are immutable once the row exists
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="invoices",
        help_text="Business user that issued this invoice",
    )

    invoice_number = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Human-facing invoice number",
    )

    # ==========================================================================
    # Customer
    # ==========================================================================

    customer_name = models.CharField(
        max_length=255,
        help_text="Name of the customer being billed",
    )

    customer_email = models.EmailField(
        blank=True,
        default="",
        help_text="Email address of the customer being billed",
    )

    # ==========================================================================
    # Terms
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        help_text="Amount due (immutable after creation)",
    )

    currency = models.CharField(
        max_length=3,
        choices=Currency.choices,
        default=Currency.USD,
        help_text="ISO 4217 currency code (immutable after creation)",
    )

    due_date = models.DateField(
        null=True,
        blank=True,
        help_text="Date payment is due",
    )

    description = models.TextField(
        blank=True,
        default="",
        help_text="Free-text description of the billed work",
    )

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    status = FSMField(
        default=InvoiceStatus.DRAFT,
        choices=InvoiceStatus.choices,
        db_index=True,
        protected=True,  # Prevent direct assignment outside transitions
        help_text="Current state of the invoice (managed by FSM)",
    )

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the invoice was marked Paid",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Invoice"
        verbose_name_plural = "Invoices"
        indexes = [
            models.Index(fields=["owner", "status"]),
        ]

    def __str__(self) -> str:
        return f"Invoice({self.id}, {self.status}, {self.amount} {self.currency})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_terms = (
            instance.__dict__.get("amount"),
            instance.__dict__.get("currency"),
        )
        return instance

    def save(self, *args, **kwargs):
        """
        Save with currency normalization and terms immutability.

        Raises:
            InvoiceTermsLockedError: If amount or currency changed on an
                existing row
        """
        if self._state.adding:
            self.currency = normalize_currency(self.currency)
        else:
            loaded_amount, loaded_currency = getattr(
                self, "_loaded_terms", (None, None)
            )
            if loaded_amount is not None and Decimal(str(self.amount)) != loaded_amount:
                raise InvoiceTermsLockedError(
                    "Invoice amount cannot be changed after creation",
                    details={"invoice_id": str(self.id)},
                )
            if loaded_currency is not None and self.currency != loaded_currency:
                raise InvoiceTermsLockedError(
                    "Invoice currency cannot be changed after creation",
                    details={"invoice_id": str(self.id)},
                )
        super().save(*args, **kwargs)

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    @property
    def can_accept_payment(self) -> bool:
        """Whether a verified payment may still move this invoice to Paid."""
        return self.status in PAYABLE_STATUSES

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=InvoiceStatus.DRAFT,
        target=InvoiceStatus.SENT,
    )
    def send(self):
        """Transition: DRAFT -> SENT"""

    @transition(
        field=status,
        source=InvoiceStatus.SENT,
        target=InvoiceStatus.OVERDUE,
    )
    def mark_overdue(self):
        """Transition: SENT -> OVERDUE"""

    @transition(
        field=status,
        source=list(PAYABLE_STATUSES),
        target=InvoiceStatus.PAID,
    )
    def mark_paid(self):
        """
        Record that the invoice has been settled.

        Transition: DRAFT | SENT | OVERDUE -> PAID

        Paid -> Paid is deliberately absent; callers must report it as a
        conflict (see InvoiceService.mark_paid).
        """
        self.paid_at = timezone.now()

    @transition(
        field=status,
        source=list(PAYABLE_STATUSES),
        target=InvoiceStatus.CANCELLED,
    )
    def cancel(self):
        """Transition: DRAFT | SENT | OVERDUE -> CANCELLED"""
