"""
Tests for payments app.

This package contains test modules for:
- test_reconciliation_service.py: Verification and reconciliation tests
- test_adapters.py: Flutterwave adapter tests
- test_views.py: API endpoint tests
- test_concurrency.py: Parallel verification (PostgreSQL only)

Webhook intake and processing tests live in payments/webhooks/tests/.

Usage:
    pytest payments/tests/
    pytest payments/tests/test_reconciliation_service.py
"""
