"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Services encapsulate business logic separate from views and models.
Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, business rules)
    - Exceptions: Use for unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ServiceResult

    class InvoiceService(BaseService):
        @classmethod
        def get_payment_status(cls, invoice_id) -> ServiceResult[dict]:
            try:
                invoice = cls.get_invoice(invoice_id)
            except InvoiceNotFoundError as e:
                return cls.handle_exception(e, "Status lookup failed", logging.INFO)
            return ServiceResult.success({"status": invoice.status})

    # In view
    result = InvoiceService.get_payment_status(invoice_id)
    if result.success:
        return Response(result.data)
    return Response(result.to_response(), status=404)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        details: Structured context for the failure (ids, observed values)

    Usage:
        return ServiceResult.success(payment)
        return ServiceResult.failure("Invoice not found", "INVOICE_NOT_FOUND")

        result = ReconciliationService().verify_payment(...)
        if not result:
            logger.info(result.error_code)
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    details: dict[str, Any] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            details: Structured failure context

        Example:
            return ServiceResult.failure(
                "Payment amount mismatch",
                error_code="AMOUNT_MISMATCH",
                details={"paid": "99.99", "expected": "100.00"},
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            details=details,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own message, code and details.
        Anything else falls back to the exception class name as the code.

        Example:
            try:
                self.gateway.verify_transaction(tx_id)
            except GatewayError as e:
                return ServiceResult.from_exception(e)
        """
        if isinstance(exc, BaseApplicationError):
            return cls(
                success=False,
                error=exc.message,
                error_code=error_code or exc.error_code,
                details=exc.details or None,
            )
        return cls(
            success=False,
            error=str(exc),
            error_code=error_code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Failure details are flattened into the top level so clients can
        read fields such as ``payment_id`` directly.
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.details:
            for key, value in self.details.items():
                response.setdefault(key, value)
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Exception handling patterns

    Design Notes:
        - Use @staticmethod or @classmethod where no state is needed
        - Services that wrap an injected client hold it on the instance
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
        extra: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """
        Convert exception to ServiceResult with logging.

        Args:
            exc: The caught exception
            context: Short description of the operation for the log line
            log_level: Logging level (default ERROR)
            extra: Structured logging context

        Returns:
            ServiceResult with error details
        """
        logger = cls.get_logger()
        message = f"{context}: {exc}" if context else str(exc)
        logger.log(
            log_level,
            message,
            extra=extra or {},
            exc_info=log_level >= logging.ERROR,
        )
        return ServiceResult.from_exception(exc)
