"""
Invoices app.

Holds the Invoice record that payments are reconciled against, its
status state machine, and the public payment-status endpoint used by
shared invoice pages.

Related apps:
    - authentication: User model (invoice owner)
    - payments: Payment records and reconciliation
"""
