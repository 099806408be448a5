"""
Flutterwave API adapter for payment operations.

This module provides the FlutterwaveAdapter class which encapsulates all
Flutterwave API interactions. All gateway calls go through this adapter
to ensure consistent error handling, timeouts, retries and observability.

Features:
- Bounded timeout on every HTTP call
- Retries with exponential backoff for transient failures only
- Translation of HTTP and network errors to domain exceptions
- Structured logging with timing metrics (the secret key is never logged)
- Fail-closed webhook signature verification

Configuration (via settings):
- FLUTTERWAVE_SECRET_KEY: API secret key (Bearer credential)
- FLUTTERWAVE_BASE_URL: API base (default: https://api.flutterwave.com/v3)
- FLUTTERWAVE_WEBHOOK_HASH: Shared secret sent in the verif-hash header
- FLUTTERWAVE_API_TIMEOUT_SECONDS: Per-request timeout (default: 10)
- FLUTTERWAVE_MAX_RETRIES: Retries after the first attempt (default: 2)

Usage:
    from payments.adapters import get_gateway

    gateway = get_gateway()
    transaction = gateway.verify_transaction("285959875")
    if transaction.is_successful:
        ...
"""

from __future__ import annotations

import functools
import hmac
import logging
import random
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import quote

import requests
from django.conf import settings

from payments.exceptions import (
    GatewayError,
    GatewayProtocolError,
    GatewayRejectedError,
    GatewayUnavailableError,
    SignatureInvalidError,
)

DEFAULT_BASE_URL = "https://api.flutterwave.com/v3"

# Flutterwave's transaction status for a completed charge
SUCCESSFUL_STATUS = "successful"


# =============================================================================
# Data Types
# =============================================================================


@dataclass(frozen=True)
class RemoteTransaction:
    """
    Normalized view of a Flutterwave transaction.

    Attributes:
        id: Flutterwave transaction id
        tx_ref: Merchant transaction reference (idempotency key)
        flw_ref: Flutterwave's own reference
        status: Transaction status ("successful", "failed", "pending"...)
        amount: Charged amount as an exact Decimal
        currency: ISO 4217 code (upper-case)
        customer_email: Payer email
        customer_name: Payer name
        payment_type: card, mobilemoneyzambia, bank_transfer...
        meta: Merchant metadata echoed back by the gateway
        raw: Original "data" object (for debugging)
    """

    id: str
    tx_ref: str
    status: str
    amount: Decimal
    currency: str
    flw_ref: str = ""
    customer_email: str = ""
    customer_name: str = ""
    payment_type: str = ""
    meta: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def is_successful(self) -> bool:
        return self.status == SUCCESSFUL_STATUS


@dataclass
class PaymentLinkParams:
    """
    Parameters for creating a hosted checkout link.

    Attributes:
        tx_ref: Unique merchant reference for the charge
        amount: Amount to charge
        currency: ISO 4217 code
        redirect_url: Where Flutterwave sends the payer afterwards
        customer_email: Payer email (required by Flutterwave)
        customer_name: Payer name
        invoice_id: Invoice being paid (echoed back in meta)
        user_id: Invoice owner (echoed back in meta)
        title: Checkout page title
        description: Checkout page description
        payment_options: Comma-separated payment methods
    """

    tx_ref: str
    amount: Decimal
    currency: str
    redirect_url: str
    customer_email: str
    invoice_id: str
    user_id: str
    customer_name: str = ""
    title: str = "PayRush Invoice Payment"
    description: str = ""
    payment_options: str = "card"

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.tx_ref:
            raise ValueError("tx_ref is required")
        if not self.customer_email:
            raise ValueError("customer_email is required")

    def to_payload(self) -> dict[str, Any]:
        return {
            "tx_ref": self.tx_ref,
            "amount": str(self.amount),
            "currency": self.currency,
            "redirect_url": self.redirect_url,
            "payment_options": self.payment_options,
            "customer": {
                "email": self.customer_email,
                "name": self.customer_name,
            },
            "customizations": {
                "title": self.title,
                "description": self.description,
            },
            "meta": {
                "invoice_id": self.invoice_id,
                "user_id": self.user_id,
                "source": "payrush",
            },
        }


@dataclass
class PaymentLinkResult:
    """Hosted checkout link returned by Flutterwave."""

    link: str
    tx_ref: str
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Retry Logic Helpers
# =============================================================================


def backoff_delay(attempt: int, base: float = 0.5, max_delay: float = 8.0) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        base: Base delay in seconds
        max_delay: Maximum delay in seconds

    Returns:
        Delay in seconds with 0-25% jitter

    Example:
        # Attempt 0: 0.5 - 0.625 seconds
        # Attempt 2: 2.0 - 2.5 seconds
        delay = backoff_delay(attempt=2)
    """
    delay = min(base * (2**attempt), max_delay)
    jitter = delay * random.uniform(0, 0.25)
    return delay + jitter


# =============================================================================
# Flutterwave Adapter
# =============================================================================


class FlutterwaveAdapter:
    """
    Adapter for Flutterwave v3 API operations.

    Instances hold configuration and a requests.Session; build one per
    process with get_gateway() and pass it to the services that need it.
    Thread-safe for the read-mostly way it is used here.

    Usage:
        gateway = FlutterwaveAdapter.from_settings()
        transaction = gateway.verify_transaction(transaction_id)
        result = gateway.create_payment_link(params)
        gateway.verify_webhook_signature(request.headers.get("verif-hash"))
    """

    SIGNATURE_HEADER = "verif-hash"

    def __init__(
        self,
        secret_key: str,
        base_url: str = DEFAULT_BASE_URL,
        webhook_hash: str = "",
        timeout: float = 10,
        max_retries: int = 2,
        session: requests.Session | None = None,
    ) -> None:
        self._secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self._webhook_hash = webhook_hash
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()

    def __repr__(self) -> str:
        return f"FlutterwaveAdapter(base_url={self.base_url!r})"

    # =========================================================================
    # Configuration
    # =========================================================================

    @classmethod
    def from_settings(cls) -> FlutterwaveAdapter:
        """Build an adapter from FLUTTERWAVE_* Django settings."""
        return cls(
            secret_key=settings.FLUTTERWAVE_SECRET_KEY,
            base_url=getattr(settings, "FLUTTERWAVE_BASE_URL", DEFAULT_BASE_URL),
            webhook_hash=getattr(settings, "FLUTTERWAVE_WEBHOOK_HASH", ""),
            timeout=getattr(settings, "FLUTTERWAVE_API_TIMEOUT_SECONDS", 10),
            max_retries=getattr(settings, "FLUTTERWAVE_MAX_RETRIES", 2),
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._secret_key}",
            "Content-Type": "application/json",
        }

    # =========================================================================
    # Core Operations
    # =========================================================================

    def verify_transaction(
        self,
        transaction_id: str | int,
        trace_id: str | None = None,
    ) -> RemoteTransaction:
        """
        Fetch the authoritative state of a transaction.

        GET {base}/transactions/{id}/verify

        Args:
            transaction_id: Flutterwave transaction id from checkout
            trace_id: Optional trace ID for log correlation

        Returns:
            RemoteTransaction

        Raises:
            GatewayUnavailableError: Network error, timeout, 5xx or 429
                (after retries)
            GatewayRejectedError: Gateway answered with an error
            GatewayProtocolError: Body unusable
        """
        log_context = {
            "operation": "verify_transaction",
            "transaction_id": str(transaction_id),
            "trace_id": trace_id,
        }
        body = self._request(
            "GET",
            f"/transactions/{quote(str(transaction_id), safe='')}/verify",
            log_context,
        )
        return self._parse_transaction(body.get("data"), log_context)

    def create_payment_link(
        self,
        params: PaymentLinkParams,
        trace_id: str | None = None,
    ) -> PaymentLinkResult:
        """
        Create a hosted checkout link.

        POST {base}/payments

        Raises:
            GatewayUnavailableError, GatewayRejectedError, GatewayProtocolError
        """
        log_context = {
            "operation": "create_payment_link",
            "tx_ref": params.tx_ref,
            "invoice_id": params.invoice_id,
            "currency": params.currency,
            "trace_id": trace_id,
        }
        body = self._request("POST", "/payments", log_context, json=params.to_payload())

        data = body.get("data")
        link = data.get("link") if isinstance(data, dict) else None
        if not link:
            self.get_logger().error(
                "Flutterwave payment link response missing link",
                extra=log_context,
            )
            raise GatewayProtocolError("Payment link missing from gateway response")

        return PaymentLinkResult(link=link, tx_ref=params.tx_ref, raw_response=body)

    # =========================================================================
    # Webhook Handling
    # =========================================================================

    def verify_webhook_signature(self, signature: str | None) -> None:
        """
        Check the verif-hash header of a webhook delivery.

        Fails closed: a missing header, a wrong value and an unconfigured
        secret are all rejected.

        Raises:
            SignatureInvalidError: Delivery must not be processed
        """
        if not self._webhook_hash:
            self.get_logger().error(
                "FLUTTERWAVE_WEBHOOK_HASH is not configured; rejecting webhook",
            )
            raise SignatureInvalidError("Webhook secret not configured")

        if not signature:
            raise SignatureInvalidError("Missing webhook signature")

        if not hmac.compare_digest(
            signature.encode("utf-8"), self._webhook_hash.encode("utf-8")
        ):
            raise SignatureInvalidError("Invalid webhook signature")

    # =========================================================================
    # HTTP Plumbing
    # =========================================================================

    def _request(
        self,
        method: str,
        path: str,
        log_context: dict[str, Any],
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request, retrying transient failures with backoff."""
        logger = self.get_logger()
        attempt = 0

        while True:
            start_time = time.time()
            logger.info(
                "Starting Flutterwave operation",
                extra={**log_context, "attempt": attempt + 1},
            )
            try:
                body = self._send_once(method, path, log_context, json, start_time)
            except GatewayError as e:
                if not e.is_retryable or attempt >= self.max_retries:
                    raise
                delay = backoff_delay(attempt)
                logger.warning(
                    "Transient Flutterwave error, retrying",
                    extra={
                        **log_context,
                        "attempt": attempt + 1,
                        "retry_in_seconds": round(delay, 3),
                        "error_code": e.error_code,
                    },
                )
                time.sleep(delay)
                attempt += 1
                continue

            logger.info(
                "Flutterwave operation completed",
                extra={
                    **log_context,
                    "attempt": attempt + 1,
                    "duration_ms": (time.time() - start_time) * 1000,
                },
            )
            return body

    def _send_once(
        self,
        method: str,
        path: str,
        log_context: dict[str, Any],
        json: dict[str, Any] | None,
        start_time: float,
    ) -> dict[str, Any]:
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers(),
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_transport_error(e, log_context, duration_ms)
            raise  # Never reached, but satisfies type checker

        duration_ms = (time.time() - start_time) * 1000
        return self._handle_response(response, log_context, duration_ms)

    def _handle_transport_error(
        self,
        error: requests.RequestException,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate requests exceptions to domain exceptions.

        Raises:
            GatewayUnavailableError: Always (timeouts and connection errors
                are transient)
        """
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, requests.Timeout):
            logger.error("Flutterwave request timed out", extra=log_context)
            raise GatewayUnavailableError(
                "Payment gateway timed out. Please retry.",
                details={"reason": "timeout"},
            )

        logger.error(
            f"Connection error to Flutterwave: {type(error).__name__}",
            extra=log_context,
        )
        raise GatewayUnavailableError(
            "Could not connect to payment gateway. Please retry.",
            details={"reason": "connection_error"},
        )

    def _handle_response(
        self,
        response: requests.Response,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> dict[str, Any]:
        """
        Classify an HTTP response and return the decoded envelope.

        Raises:
            GatewayUnavailableError: HTTP 5xx or 429
            GatewayRejectedError: Other non-2xx, or envelope status != success
            GatewayProtocolError: Body is not a JSON object
        """
        logger = self.get_logger()
        status_code = response.status_code
        log_context = {**log_context, "http_status": status_code, "duration_ms": duration_ms}

        if status_code == 429 or status_code >= 500:
            logger.warning("Flutterwave unavailable", extra=log_context)
            raise GatewayUnavailableError(
                "Payment gateway unavailable. Please retry.",
                http_status=status_code,
            )

        try:
            body = response.json(parse_float=Decimal)
        except ValueError:
            body = None

        if not 200 <= status_code < 300:
            message = self._gateway_message(body) or f"Gateway returned HTTP {status_code}"
            if status_code in (401, 403):
                logger.critical(
                    "Flutterwave authentication failed - check secret key",
                    extra=log_context,
                )
            else:
                logger.warning(
                    "Flutterwave rejected request",
                    extra={**log_context, "gateway_message": message},
                )
            raise GatewayRejectedError(message, http_status=status_code)

        if not isinstance(body, dict):
            logger.error("Flutterwave returned a non-JSON body", extra=log_context)
            raise GatewayProtocolError(
                "Payment gateway returned an unreadable response",
                http_status=status_code,
            )

        if body.get("status") != "success":
            message = self._gateway_message(body) or "Payment verification failed"
            logger.warning(
                "Flutterwave envelope status is not success",
                extra={**log_context, "gateway_status": body.get("status")},
            )
            raise GatewayRejectedError(
                message,
                http_status=status_code,
                details={"gateway_status": body.get("status")},
            )

        return body

    @staticmethod
    def _gateway_message(body: Any) -> str | None:
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return None

    def _parse_transaction(
        self,
        data: Any,
        log_context: dict[str, Any],
    ) -> RemoteTransaction:
        """
        Map the "data" object of a verify response to RemoteTransaction.

        Raises:
            GatewayProtocolError: Required fields missing or malformed
        """
        if not isinstance(data, dict):
            self.get_logger().error("Verify response has no data object", extra=log_context)
            raise GatewayProtocolError("Gateway response missing transaction data")

        missing = [
            name
            for name in ("id", "tx_ref", "status", "amount", "currency")
            if data.get(name) in (None, "")
        ]
        if missing:
            self.get_logger().error(
                "Verify response missing fields",
                extra={**log_context, "missing_fields": missing},
            )
            raise GatewayProtocolError(
                "Gateway transaction is missing required fields",
                details={"missing_fields": missing},
            )

        try:
            amount = Decimal(str(data["amount"]))
        except (InvalidOperation, ValueError):
            raise GatewayProtocolError(
                "Gateway transaction amount is not a number",
                details={"amount": str(data["amount"])},
            )
        if not amount.is_finite():
            raise GatewayProtocolError(
                "Gateway transaction amount is not a number",
                details={"amount": str(data["amount"])},
            )

        customer = data.get("customer") if isinstance(data.get("customer"), dict) else {}
        meta = data.get("meta") if isinstance(data.get("meta"), dict) else {}

        return RemoteTransaction(
            id=str(data["id"]),
            tx_ref=str(data["tx_ref"]),
            flw_ref=str(data.get("flw_ref") or ""),
            status=str(data["status"]).lower(),
            amount=amount,
            currency=str(data["currency"]).upper(),
            customer_email=str(customer.get("email") or ""),
            customer_name=str(customer.get("name") or ""),
            payment_type=str(data.get("payment_type") or ""),
            meta=meta,
            raw=data,
        )


@functools.lru_cache(maxsize=1)
def get_gateway() -> FlutterwaveAdapter:
    """
    Process-wide gateway adapter built from settings on first use.

    Call get_gateway.cache_clear() after changing FLUTTERWAVE_* settings.
    """
    return FlutterwaveAdapter.from_settings()
