"""
Payment-specific exceptions for gateway calls and reconciliation.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── InvalidRequestError - Missing or malformed reconciliation input
    ├── VerificationFailedError - Gateway lookup failed (wraps a GatewayError)
    ├── PaymentNotSuccessfulError - Gateway reports a non-successful charge
    ├── AmountMismatchError - Charged amount differs from the invoice
    ├── CurrencyMismatchError - Charged currency differs from the invoice
    └── PersistenceFailedError - Payment insert or invoice update failed

    GatewayError (ExternalServiceError)
    ├── GatewayUnavailableError - Network error, timeout, 5xx, 429 (transient, retry)
    ├── GatewayRejectedError - Gateway answered with an error (permanent)
    └── GatewayProtocolError - Gateway answered with an unusable body (permanent)

    AlreadyProcessedError - Reference already reconciled (inherits ConflictError)
    LockAcquisitionError - Distributed lock timeout (inherits ConflictError)
    SignatureInvalidError - Webhook signature missing or wrong (inherits PermissionDeniedError)

Invoice lookups and state conflicts live in invoices.exceptions.

Usage:
    from payments.exceptions import AmountMismatchError

    raise AmountMismatchError(
        "Payment amount mismatch",
        details={"paid": "99.99", "expected": "100.00"},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    PermissionDeniedError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Example:
        try:
            service.verify_payment(transaction_id, invoice_id)
        except PaymentError as e:
            return Response(e.to_dict(), status=400)
    """

    default_error_code: str = "PAYMENT_ERROR"


class InvalidRequestError(PaymentError):
    """Raised when transaction_id or invoice_id is missing or malformed."""

    default_error_code: str = "INVALID_REQUEST"


class VerificationFailedError(PaymentError):
    """
    Raised when the gateway could not confirm a transaction.

    Wraps the underlying GatewayError. ``cause_code`` keeps the gateway
    error code so the HTTP layer can tell a gateway-reported rejection
    (client error) from an outage (server error).
    """

    default_error_code: str = "VERIFICATION_FAILED"

    def __init__(
        self,
        message: str,
        cause: BaseApplicationError | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if cause is not None:
            details.setdefault("cause", cause.error_code)
        super().__init__(message, error_code=error_code, details=details)
        self.cause = cause

    @property
    def cause_code(self) -> str | None:
        return self.cause.error_code if self.cause is not None else None


class PaymentNotSuccessfulError(PaymentError):
    """
    Raised when the gateway reports the charge in a non-successful state.

    The observed status is kept in details["status"] for diagnostics.
    """

    default_error_code: str = "PAYMENT_NOT_SUCCESSFUL"


class AmountMismatchError(PaymentError):
    """
    Raised when the charged amount differs from the invoice amount.

    Both values are carried in details ("paid" and "expected") as strings
    so they serialize without float rounding.
    """

    default_error_code: str = "AMOUNT_MISMATCH"


class CurrencyMismatchError(PaymentError):
    """Raised when the charged currency differs from the invoice currency."""

    default_error_code: str = "CURRENCY_MISMATCH"


class PersistenceFailedError(PaymentError):
    """
    Raised when a reconciliation write fails.

    ``stage`` tells a failed payment insert apart from a failed invoice
    update so partially applied reconciliations are detectable:

        PAYMENT_INSERT_FAILED - nothing was recorded
        INVOICE_UPDATE_FAILED - the invoice could not be advanced to Paid
    """

    STAGE_PAYMENT_INSERT = "payment_insert"
    STAGE_INVOICE_UPDATE = "invoice_update"

    STAGE_ERROR_CODES = {
        STAGE_PAYMENT_INSERT: "PAYMENT_INSERT_FAILED",
        STAGE_INVOICE_UPDATE: "INVOICE_UPDATE_FAILED",
    }

    default_error_code: str = "PERSISTENCE_FAILED"

    def __init__(
        self,
        message: str,
        stage: str,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        details["stage"] = stage
        super().__init__(
            message,
            error_code=self.STAGE_ERROR_CODES.get(stage),
            details=details,
        )
        self.stage = stage


# =============================================================================
# Gateway Exceptions
# =============================================================================


class GatewayError(ExternalServiceError):
    """
    Base exception for all payment gateway errors.

    Use is_retryable to determine retry behavior:
    - True: Transient error, safe to retry with backoff
    - False: Permanent error, do not retry
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        http_status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if http_status is not None:
            details["http_status"] = http_status
        super().__init__(message, error_code=error_code, details=details)
        self.http_status = http_status


class GatewayUnavailableError(GatewayError):
    """
    The gateway could not be reached or answered with a server error.

    Covers connection failures, timeouts, HTTP 5xx and HTTP 429.
    A verify call is read-only, so retrying is always safe.
    """

    default_error_code: str = "GATEWAY_UNAVAILABLE"
    is_retryable: bool = True


class GatewayRejectedError(GatewayError):
    """
    The gateway answered with a structured error.

    Typical causes: unknown transaction id, invalid credentials,
    envelope status other than "success".
    """

    default_error_code: str = "GATEWAY_REJECTED"


class GatewayProtocolError(GatewayError):
    """The gateway response body could not be parsed or lacks required fields."""

    default_error_code: str = "GATEWAY_PROTOCOL_ERROR"


# =============================================================================
# Idempotency, Concurrency and Authentication Exceptions
# =============================================================================


class AlreadyProcessedError(ConflictError):
    """
    Raised when a transaction reference has already been reconciled.

    This is an expected outcome of repeated verification calls and
    webhook redeliveries. Log it at INFO, never ERROR.

    Attributes:
        payment_id: Identifier of the payment recorded first
    """

    default_error_code: str = "ALREADY_PROCESSED"

    def __init__(
        self,
        message: str,
        payment_id: Any = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if payment_id is not None:
            details["payment_id"] = str(payment_id)
        super().__init__(message, details=details)
        self.payment_id = payment_id


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Another worker is reconciling the same reference. The caller can
    retry; the second attempt will normally see AlreadyProcessedError.
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


class SignatureInvalidError(PermissionDeniedError):
    """
    Raised when a webhook delivery fails signature verification.

    Also raised when no webhook secret is configured, so an
    unconfigured deployment rejects every delivery.
    """

    default_error_code: str = "SIGNATURE_INVALID"


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Payment domain
    "PaymentError",
    "InvalidRequestError",
    "VerificationFailedError",
    "PaymentNotSuccessfulError",
    "AmountMismatchError",
    "CurrencyMismatchError",
    "PersistenceFailedError",
    # Gateway
    "GatewayError",
    "GatewayUnavailableError",
    "GatewayRejectedError",
    "GatewayProtocolError",
    # Idempotency, concurrency, authentication
    "AlreadyProcessedError",
    "LockAcquisitionError",
    "SignatureInvalidError",
]
