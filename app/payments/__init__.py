"""
Payments app for Flutterwave reconciliation.

This app handles:
- Verifying Flutterwave transactions and recording payments
- Webhook intake with idempotent, asynchronous processing
- Payment history for invoice owners
- Hosted checkout links

Related apps:
    - invoices: Invoices that payments settle
    - authentication: Invoice owners

Usage:
    from payments.services import ReconciliationService

    # Verify a transaction the frontend reported and settle the invoice
    result = ReconciliationService().verify_payment(transaction_id, invoice_id)
"""
