"""
Tests for payment models, status normalization and currencies.
"""

import pytest
from django.db import IntegrityError

from core.exceptions import ValidationError
from payments.currencies import is_supported_currency, normalize_currency, payment_options_for
from payments.models import WebhookEvent
from payments.state_machines import PaymentStatus, WebhookEventStatus
from payments.tests.factories import PaymentFactory, WebhookEventFactory


class TestPayment:
    """Tests for the Payment model."""

    def test_reference_is_unique(self, db):
        payment = PaymentFactory()

        with pytest.raises(IntegrityError):
            PaymentFactory(reference=payment.reference)

    def test_str(self, db):
        payment = PaymentFactory(reference="PAYRUSH_abc_1")

        assert str(payment) == "Payment(PAYRUSH_abc_1, 100.00 USD)"


class TestPaymentStatusNormalize:
    @pytest.mark.parametrize("value", ["successful", "SUCCESSFUL", " completed ", "success"])
    def test_successful_spellings(self, value):
        assert PaymentStatus.normalize(value) == PaymentStatus.SUCCESSFUL

    @pytest.mark.parametrize("value", [None, "", "failed", "pending", "cancelled"])
    def test_other_values(self, value):
        assert PaymentStatus.normalize(value) is None


class TestWebhookEvent:
    """Tests for WebhookEvent helpers."""

    def test_processing_increments_retry_count(self, db):
        event = WebhookEventFactory()

        event.mark_processing()

        assert event.status == WebhookEventStatus.PROCESSING
        assert event.retry_count == 1

    def test_processed_records_action_and_clears_error(self, db):
        event = WebhookEventFactory(
            status=WebhookEventStatus.FAILED, error_message="[X] boom"
        )

        event.mark_processed("payment_completed")

        assert event.is_processed is True
        assert event.result_action == "payment_completed"
        assert event.processed_at is not None
        assert event.error_message is None

    def test_can_retry_until_limit(self, db):
        assert WebhookEventFactory(status=WebhookEventStatus.FAILED, retry_count=4).can_retry
        assert not WebhookEventFactory(status=WebhookEventStatus.FAILED, retry_count=5).can_retry
        assert not WebhookEventFactory(status=WebhookEventStatus.PENDING).can_retry

    def test_data_property(self):
        assert WebhookEvent(payload={"data": {"id": 1}}).data == {"id": 1}
        assert WebhookEvent(payload={"data": "oops"}).data == {}
        assert WebhookEvent(payload=[]).data == {}


class TestCurrencies:
    def test_normalize_uppercases(self):
        assert normalize_currency(" zmw ") == "ZMW"

    @pytest.mark.parametrize("code", [None, "", "XYZ", "US"])
    def test_unsupported(self, code):
        assert is_supported_currency(code) is False
        with pytest.raises(ValidationError) as exc_info:
            normalize_currency(code)
        assert exc_info.value.error_code == "UNSUPPORTED_CURRENCY"

    def test_payment_options(self):
        assert payment_options_for("usd") == "card,mobilemoney,banktransfer,ussd"
        assert payment_options_for("EUR") == "card,banktransfer"
