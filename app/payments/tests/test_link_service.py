"""
Tests for PaymentLinkService and the PAYRUSH transaction reference format.
"""

import uuid
from decimal import Decimal

import pytest

from invoices.states import InvoiceStatus
from invoices.tests.factories import InvoiceFactory
from payments.adapters import PaymentLinkResult
from payments.exceptions import GatewayUnavailableError
from payments.services import PaymentLinkService, build_reference, parse_reference


@pytest.fixture
def link_gateway(gateway):
    """Gateway double that echoes a checkout link for any params."""
    gateway.create_payment_link.side_effect = lambda params, trace_id=None: (
        PaymentLinkResult(
            link=f"https://checkout.flutterwave.test/pay/{params.tx_ref}",
            tx_ref=params.tx_ref,
        )
    )
    return gateway


class TestReferenceFormat:
    """Tests for build_reference() and parse_reference()."""

    def test_build_reference_uses_uuid_hex(self):
        invoice_id = uuid.UUID("0b7a6c1e-0000-4000-8000-00000000000a")

        reference = build_reference(invoice_id, timestamp=1700000000)

        assert reference == "PAYRUSH_0b7a6c1e00004000800000000000000a_1700000000"

    def test_parse_round_trip_resolves_invoice(self):
        invoice_id = uuid.uuid4()

        parsed = parse_reference(build_reference(invoice_id))

        assert uuid.UUID(parsed) == invoice_id

    def test_parse_is_case_insensitive(self):
        assert parse_reference("payrush_abc123_1700000000") == "abc123"

    @pytest.mark.parametrize(
        "reference",
        [None, "", "FLW-REF-123", "PAYRUSH_abc", "PAYRUSH_abc_notanumber", "OTHER_abc_1"],
    )
    def test_parse_rejects_other_formats(self, reference):
        assert parse_reference(reference) is None


class TestCreatePaymentLink:
    """Tests for PaymentLinkService.create_payment_link()."""

    def test_creates_link_for_owned_invoice(self, invoice, user, link_gateway):
        result = PaymentLinkService(gateway=link_gateway).create_payment_link(
            user, invoice.id
        )

        assert result.success is True
        assert result.data["invoice_id"] == str(invoice.id)
        assert parse_reference(result.data["tx_ref"]) == invoice.id.hex
        assert result.data["link"].endswith(result.data["tx_ref"])

    def test_params_carry_invoice_terms(self, invoice, user, link_gateway, settings):
        settings.FLUTTERWAVE_REDIRECT_URL = "https://app.example.com/payment/callback"

        PaymentLinkService(gateway=link_gateway).create_payment_link(user, invoice.id)

        params = link_gateway.create_payment_link.call_args[0][0]
        assert params.amount == Decimal("100.00")
        assert params.currency == "USD"
        assert params.customer_email == invoice.customer_email
        assert params.invoice_id == str(invoice.id)
        assert params.user_id == str(user.pk)
        assert params.redirect_url == "https://app.example.com/payment/callback"
        assert params.payment_options == "card,mobilemoney,banktransfer,ussd"

    def test_redirect_url_override(self, invoice, user, link_gateway):
        PaymentLinkService(gateway=link_gateway).create_payment_link(
            user, invoice.id, redirect_url="https://shop.example.com/done"
        )

        params = link_gateway.create_payment_link.call_args[0][0]
        assert params.redirect_url == "https://shop.example.com/done"

    def test_invoice_of_another_owner_is_not_found(self, invoice, link_gateway):
        stranger = InvoiceFactory().owner

        result = PaymentLinkService(gateway=link_gateway).create_payment_link(
            stranger, invoice.id
        )

        assert result.error_code == "INVOICE_NOT_FOUND"
        link_gateway.create_payment_link.assert_not_called()

    def test_paid_invoice(self, user, link_gateway):
        invoice = InvoiceFactory(owner=user, status=InvoiceStatus.PAID)

        result = PaymentLinkService(gateway=link_gateway).create_payment_link(
            user, invoice.id
        )

        assert result.error_code == "INVOICE_ALREADY_PAID"

    def test_cancelled_invoice(self, user, link_gateway):
        invoice = InvoiceFactory(owner=user, status=InvoiceStatus.CANCELLED)

        result = PaymentLinkService(gateway=link_gateway).create_payment_link(
            user, invoice.id
        )

        assert result.error_code == "INVALID_STATE_TRANSITION"

    def test_invoice_without_customer_email(self, user, link_gateway):
        invoice = InvoiceFactory(owner=user, customer_email="")

        result = PaymentLinkService(gateway=link_gateway).create_payment_link(
            user, invoice.id
        )

        assert result.error_code == "CUSTOMER_EMAIL_REQUIRED"
        link_gateway.create_payment_link.assert_not_called()

    def test_gateway_failure(self, invoice, user, gateway):
        gateway.create_payment_link.side_effect = GatewayUnavailableError("down")

        result = PaymentLinkService(gateway=gateway).create_payment_link(user, invoice.id)

        assert result.success is False
        assert result.error_code == "GATEWAY_UNAVAILABLE"
