"""
Tests for the Invoice model.

Tests cover:
- FSM transitions and terminal states
- Amount/currency immutability after creation
- Currency normalization on create
"""

from decimal import Decimal

import pytest
from django_fsm import TransitionNotAllowed

from core.exceptions import ValidationError
from invoices.exceptions import InvoiceTermsLockedError
from invoices.models import Invoice
from invoices.states import InvoiceStatus
from invoices.tests.factories import InvoiceFactory


@pytest.mark.django_db
class TestInvoiceTransitions:
    """Tests for Invoice state transitions."""

    def test_draft_can_be_sent(self):
        invoice = InvoiceFactory(status=InvoiceStatus.DRAFT)

        invoice.send()

        assert invoice.status == InvoiceStatus.SENT

    def test_sent_can_become_overdue(self):
        invoice = InvoiceFactory()

        invoice.mark_overdue()

        assert invoice.status == InvoiceStatus.OVERDUE

    @pytest.mark.parametrize(
        "source",
        [InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.OVERDUE],
    )
    def test_payable_states_can_be_paid(self, source):
        invoice = InvoiceFactory(status=source)

        invoice.mark_paid()

        assert invoice.status == InvoiceStatus.PAID
        assert invoice.paid_at is not None
        assert invoice.is_paid is True

    @pytest.mark.parametrize("source", [InvoiceStatus.PAID, InvoiceStatus.CANCELLED])
    def test_terminal_states_cannot_be_paid(self, source):
        invoice = InvoiceFactory(status=source)

        with pytest.raises(TransitionNotAllowed):
            invoice.mark_paid()

    def test_paid_cannot_be_cancelled(self):
        invoice = InvoiceFactory(status=InvoiceStatus.PAID)

        with pytest.raises(TransitionNotAllowed):
            invoice.cancel()

    def test_status_cannot_be_assigned_directly(self):
        invoice = Invoice.objects.get(pk=InvoiceFactory().pk)

        with pytest.raises(AttributeError):
            invoice.status = InvoiceStatus.PAID

    def test_can_accept_payment(self):
        assert InvoiceFactory(status=InvoiceStatus.OVERDUE).can_accept_payment is True
        assert InvoiceFactory(status=InvoiceStatus.CANCELLED).can_accept_payment is False


@pytest.mark.django_db
class TestInvoiceTerms:
    """Tests for amount/currency handling on save."""

    def test_amount_is_locked_after_creation(self):
        invoice = Invoice.objects.get(pk=InvoiceFactory().pk)
        invoice.amount = Decimal("50.00")

        with pytest.raises(InvoiceTermsLockedError):
            invoice.save()

        assert Invoice.objects.get(pk=invoice.pk).amount == Decimal("100.00")

    def test_currency_is_locked_after_creation(self):
        invoice = Invoice.objects.get(pk=InvoiceFactory().pk)
        invoice.currency = "NGN"

        with pytest.raises(InvoiceTermsLockedError) as exc_info:
            invoice.save()

        assert exc_info.value.error_code == "INVOICE_TERMS_LOCKED"

    def test_other_fields_remain_editable(self):
        invoice = Invoice.objects.get(pk=InvoiceFactory().pk)
        invoice.description = "Updated scope"

        invoice.save()

        assert Invoice.objects.get(pk=invoice.pk).description == "Updated scope"

    def test_currency_is_normalized_on_create(self):
        invoice = InvoiceFactory(currency=" zmw ")

        assert Invoice.objects.get(pk=invoice.pk).currency == "ZMW"

    def test_unsupported_currency_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            InvoiceFactory(currency="XYZ")

        assert exc_info.value.error_code == "UNSUPPORTED_CURRENCY"
        assert Invoice.objects.count() == 0
