"""
Tests for ServiceResult and BaseService.
"""

import logging

from core.exceptions import ConflictError, ValidationError
from core.services import BaseService, ServiceResult


class SampleService(BaseService):
    pass


class TestServiceResult:
    """Tests for ServiceResult."""

    def test_success_result(self):
        result = ServiceResult.success({"payment_id": "p1"})

        assert result.success is True
        assert bool(result) is True
        assert result.to_response() == {"success": True, "data": {"payment_id": "p1"}}

    def test_failure_flattens_details(self):
        result = ServiceResult.failure(
            "Payment amount mismatch",
            error_code="AMOUNT_MISMATCH",
            details={"paid": "99.99", "expected": "100.00"},
        )

        assert bool(result) is False
        assert result.to_response() == {
            "success": False,
            "error": "Payment amount mismatch",
            "error_code": "AMOUNT_MISMATCH",
            "paid": "99.99",
            "expected": "100.00",
        }

    def test_details_never_override_standard_keys(self):
        result = ServiceResult.failure(
            "Real message", error_code="CODE", details={"error": "shadow"}
        )

        assert result.to_response()["error"] == "Real message"

    def test_from_application_error_keeps_code_and_details(self):
        exc = ConflictError("Already processed", details={"payment_id": "p1"})

        result = ServiceResult.from_exception(exc)

        assert result.error == "Already processed"
        assert result.error_code == "CONFLICT"
        assert result.details == {"payment_id": "p1"}

    def test_from_other_exception_uses_class_name(self):
        result = ServiceResult.from_exception(KeyError("missing"))

        assert result.success is False
        assert result.error_code == "KEYERROR"

    def test_from_exception_code_override(self):
        result = ServiceResult.from_exception(
            ValidationError("bad"), error_code="INVALID_REQUEST"
        )

        assert result.error_code == "INVALID_REQUEST"


class TestBaseService:
    """Tests for BaseService helpers."""

    def test_logger_named_after_service(self):
        assert SampleService.get_logger().name == f"{__name__}.SampleService"

    def test_handle_exception_returns_failure_and_logs(self, caplog):
        exc = ValidationError("Bad input", error_code="INVALID_REQUEST")

        with caplog.at_level(logging.INFO):
            result = SampleService.handle_exception(
                exc, "Verification failed", log_level=logging.WARNING
            )

        assert result.error_code == "INVALID_REQUEST"
        assert "Verification failed: [INVALID_REQUEST] Bad input" in caplog.text
