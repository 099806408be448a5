"""
Tests for InvoiceService.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from freezegun import freeze_time

from authentication.tests.factories import UserFactory
from core.exceptions import ValidationError
from invoices.exceptions import (
    InvalidStateTransitionError,
    InvoiceAlreadyPaidError,
    InvoiceNotFoundError,
)
from invoices.models import Invoice
from invoices.services import InvoiceService, parse_invoice_id
from invoices.states import InvoiceStatus
from invoices.tests.factories import InvoiceFactory
from payments.tests.factories import PaymentFactory


class TestParseInvoiceId:
    def test_accepts_uuid_and_string(self):
        value = uuid.uuid4()

        assert parse_invoice_id(value) is value
        assert parse_invoice_id(f" {value} ") == value

    @pytest.mark.parametrize("value", ["not-a-uuid", "", None, 42])
    def test_rejects_malformed_values(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_invoice_id(value)

        assert exc_info.value.error_code == "INVALID_INVOICE_ID"


@pytest.mark.django_db
class TestGetInvoice:
    """Tests for InvoiceService.get_invoice()."""

    def test_returns_invoice(self):
        invoice = InvoiceFactory()

        assert InvoiceService.get_invoice(str(invoice.id)) == invoice

    def test_scopes_to_owner(self):
        invoice = InvoiceFactory()

        assert InvoiceService.get_invoice(invoice.id, owner=invoice.owner) == invoice
        with pytest.raises(InvoiceNotFoundError):
            InvoiceService.get_invoice(invoice.id, owner=UserFactory())

    def test_missing_invoice_raises_not_found(self):
        with pytest.raises(InvoiceNotFoundError) as exc_info:
            InvoiceService.get_invoice(uuid.uuid4())

        assert exc_info.value.error_code == "INVOICE_NOT_FOUND"


@pytest.mark.django_db
class TestMarkPaid:
    """Tests for InvoiceService.mark_paid()."""

    def test_persists_paid_status(self):
        invoice = InvoiceFactory()

        InvoiceService.mark_paid(invoice)

        stored = Invoice.objects.get(pk=invoice.pk)
        assert stored.status == InvoiceStatus.PAID
        assert stored.paid_at is not None

    def test_paid_invoice_is_a_conflict(self):
        invoice = InvoiceFactory(status=InvoiceStatus.PAID)

        with pytest.raises(InvoiceAlreadyPaidError):
            InvoiceService.mark_paid(invoice)

    def test_cancelled_invoice_is_an_invalid_transition(self):
        invoice = InvoiceFactory(status=InvoiceStatus.CANCELLED)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            InvoiceService.mark_paid(invoice)

        assert exc_info.value.details["current_state"] == InvoiceStatus.CANCELLED
        assert exc_info.value.details["target_state"] == InvoiceStatus.PAID
        assert Invoice.objects.get(pk=invoice.pk).status == InvoiceStatus.CANCELLED


@pytest.mark.django_db
class TestGetPaymentStatus:
    """Tests for InvoiceService.get_payment_status()."""

    def test_returns_status_and_recent_payments(self):
        invoice = InvoiceFactory(amount=Decimal("250.00"), currency="ZMW")
        start = timezone.now()
        payments = []
        for minutes in range(6):
            with freeze_time(start + timedelta(minutes=minutes)):
                payments.append(PaymentFactory(invoice=invoice))

        result = InvoiceService.get_payment_status(invoice.id)

        assert result.success is True
        assert result.data["invoice_id"] == str(invoice.id)
        assert result.data["status"] == InvoiceStatus.SENT
        assert result.data["amount"] == Decimal("250.00")
        assert result.data["currency"] == "ZMW"
        returned = [p["id"] for p in result.data["recent_payments"]]
        assert returned == [str(p.id) for p in reversed(payments[1:])]

    def test_invoice_without_payments(self):
        invoice = InvoiceFactory()

        result = InvoiceService.get_payment_status(invoice.id)

        assert result.data["recent_payments"] == []

    def test_unknown_invoice(self):
        result = InvoiceService.get_payment_status(uuid.uuid4())

        assert result.success is False
        assert result.error_code == "INVOICE_NOT_FOUND"

    def test_malformed_invoice_id(self):
        result = InvoiceService.get_payment_status("nope")

        assert result.success is False
        assert result.error_code == "INVALID_INVOICE_ID"
