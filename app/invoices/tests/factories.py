"""
Factory Boy factories for invoice test data.

Usage:
    from invoices.tests.factories import InvoiceFactory

    invoice = InvoiceFactory()
    invoice = InvoiceFactory(amount=Decimal("250.00"), currency="ZMW")
    invoice = InvoiceFactory(status=InvoiceStatus.CANCELLED)
"""

from decimal import Decimal

import factory

from authentication.tests.factories import UserFactory
from invoices.models import Invoice
from invoices.states import InvoiceStatus
from payments.currencies import Currency


class InvoiceFactory(factory.django.DjangoModelFactory):
    """
    Factory for Invoice model.

    Defaults to a Sent invoice for 100.00 USD. The FSM status field is
    protected, but it may be set once at construction time, so any state
    can be requested directly.
    """

    class Meta:
        model = Invoice

    owner = factory.SubFactory(UserFactory)
    invoice_number = factory.Sequence(lambda n: f"INV-{n:04d}")
    customer_name = "Jane Customer"
    customer_email = factory.Sequence(lambda n: f"customer{n}@example.com")
    amount = Decimal("100.00")
    currency = Currency.USD
    status = InvoiceStatus.SENT
    description = "Consulting services"
