"""
Payment adapters for external services.

This module provides the adapter for the Flutterwave API. All gateway
calls should go through it to ensure consistent error handling,
timeouts, retries and observability.

Usage:
    from payments.adapters import get_gateway

    transaction = get_gateway().verify_transaction(transaction_id)
"""

from payments.adapters.flutterwave_adapter import (
    FlutterwaveAdapter,
    PaymentLinkParams,
    PaymentLinkResult,
    RemoteTransaction,
    backoff_delay,
    get_gateway,
)

__all__ = [
    "FlutterwaveAdapter",
    "PaymentLinkParams",
    "PaymentLinkResult",
    "RemoteTransaction",
    "backoff_delay",
    "get_gateway",
]
