"""
Factory Boy factories for payment test data.

Usage:
    from payments.tests.factories import PaymentFactory, WebhookEventFactory

    payment = PaymentFactory(invoice=invoice)
    event = WebhookEventFactory(status=WebhookEventStatus.FAILED, retry_count=2)
"""

import factory

from invoices.tests.factories import InvoiceFactory
from payments.models import Payment, WebhookEvent
from payments.state_machines import (
    PaymentProvider,
    PaymentStatus,
    WebhookEventStatus,
)

# Flutterwave transaction id and tx_ref timestamp used across payment tests
TRANSACTION_ID = "285959875"
REFERENCE_TIMESTAMP = 1700000000


class PaymentFactory(factory.django.DjangoModelFactory):
    """
    Factory for Payment model.

    Amount and currency follow the invoice, as they would after a real
    reconciliation.
    """

    class Meta:
        model = Payment

    invoice = factory.SubFactory(InvoiceFactory)
    amount = factory.LazyAttribute(lambda o: o.invoice.amount)
    currency = factory.LazyAttribute(lambda o: o.invoice.currency)
    status = PaymentStatus.SUCCESSFUL
    reference = factory.Sequence(lambda n: f"PAYRUSH_factory{n}_1700000000")
    provider = PaymentProvider.FLUTTERWAVE
    provider_transaction_id = factory.Sequence(lambda n: str(9000000 + n))
    payment_method = "card"
    customer_email = factory.LazyAttribute(lambda o: o.invoice.customer_email)
    customer_name = factory.LazyAttribute(lambda o: o.invoice.customer_name)


class WebhookEventFactory(factory.django.DjangoModelFactory):
    """
    Factory for WebhookEvent model with a charge.completed payload.

    The payload's data.id and provider_event_id share the sequence number.
    """

    class Meta:
        model = WebhookEvent

    provider = PaymentProvider.FLUTTERWAVE
    event_type = "charge.completed"
    provider_event_id = factory.Sequence(lambda n: f"charge.completed:{8000000 + n}")
    payload = factory.Sequence(
        lambda n: {
            "event": "charge.completed",
            "data": {
                "id": 8000000 + n,
                "tx_ref": f"PAYRUSH_unknown_{8000000 + n}",
                "status": "successful",
                "amount": 100,
                "currency": "USD",
            },
        }
    )
    status = WebhookEventStatus.PENDING
