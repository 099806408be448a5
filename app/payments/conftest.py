"""
Pytest fixtures for payment tests.

Shared by payments/tests and payments/webhooks/tests. Redis is never
available in the test run, so the lock connection is patched for every
test; individual tests reconfigure ``mock_redis`` to simulate contention.

Usage:
    def test_verify(invoice, gateway, make_remote):
        gateway.verify_transaction.return_value = make_remote(invoice)
        result = ReconciliationService(gateway=gateway).verify_payment("1", invoice.id)
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from authentication.tests.factories import UserFactory
from invoices.tests.factories import InvoiceFactory
from payments.adapters import FlutterwaveAdapter, RemoteTransaction, get_gateway
from payments.services import build_reference
from payments.tests.factories import REFERENCE_TIMESTAMP, TRANSACTION_ID


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture(autouse=True)
def mock_redis():
    """Redis client behind DistributedLock; locks are always free by default."""
    with patch("payments.locks.get_redis_connection") as mock_get_conn:
        redis_instance = MagicMock()
        redis_instance.set.return_value = True
        redis_instance.eval.return_value = 1
        mock_get_conn.return_value = redis_instance
        yield redis_instance


@pytest.fixture(autouse=True)
def reset_gateway_cache():
    """Drop the process-wide adapter so settings overrides take effect."""
    get_gateway.cache_clear()
    yield
    get_gateway.cache_clear()


@pytest.fixture
def gateway():
    """Gateway adapter double; configure verify_transaction per test."""
    return MagicMock(spec=FlutterwaveAdapter)


# =============================================================================
# Invoice Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def invoice(db, user):
    """A Sent invoice for 100.00 USD."""
    return InvoiceFactory(owner=user)


# =============================================================================
# Gateway Transaction Fixtures
# =============================================================================


@pytest.fixture
def make_remote():
    """
    Build a RemoteTransaction that matches an invoice.

    Any field can be overridden:
        make_remote(invoice, amount=Decimal("99.99"), status="failed")
    """

    def _make(invoice, **overrides):
        fields = {
            "id": TRANSACTION_ID,
            "tx_ref": build_reference(invoice.id, REFERENCE_TIMESTAMP),
            "status": "successful",
            "amount": Decimal(str(invoice.amount)),
            "currency": invoice.currency,
            "flw_ref": "FLW-MOCK-123",
            "customer_email": invoice.customer_email,
            "customer_name": invoice.customer_name,
            "payment_type": "card",
        }
        fields.update(overrides)
        return RemoteTransaction(**fields)

    return _make


@pytest.fixture
def charge_payload():
    """
    Build a charge.completed webhook body for an invoice.

    Pass meta=None to drop the metadata and force the tx_ref fallback.
    """

    def _make(invoice, meta=..., **data_overrides):
        data = {
            "id": int(TRANSACTION_ID),
            "tx_ref": build_reference(invoice.id, REFERENCE_TIMESTAMP),
            "flw_ref": "FLW-MOCK-123",
            "amount": 100,
            "currency": invoice.currency,
            "status": "successful",
            "customer": {"email": invoice.customer_email, "name": invoice.customer_name},
        }
        if meta is ...:
            data["meta"] = {"invoice_id": str(invoice.id)}
        elif meta is not None:
            data["meta"] = meta
        data.update(data_overrides)
        return {"event": "charge.completed", "data": data}

    return _make
