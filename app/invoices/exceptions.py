"""
Invoice lookup and state exceptions.

Exception Hierarchy:
    InvoiceNotFoundError (NotFoundError) - No invoice with that id
    InvoiceAlreadyPaidError (ConflictError) - Invoice is already Paid
    InvalidStateTransitionError (ConflictError) - FSM transition not allowed
    InvoiceTermsLockedError (ValidationError) - Amount/currency changed after creation
"""

from __future__ import annotations

from core.exceptions import ConflictError, NotFoundError, ValidationError


class InvoiceNotFoundError(NotFoundError):
    """
    Raised when an invoice lookup finds nothing.

    An expected, user-facing condition: log at WARNING, not ERROR.
    """

    default_error_code: str = "INVOICE_NOT_FOUND"


class InvoiceAlreadyPaidError(ConflictError):
    """Raised when something tries to move a Paid invoice to Paid again."""

    default_error_code: str = "INVOICE_ALREADY_PAID"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when an invoice state transition is not allowed.

    Wraps django-fsm's TransitionNotAllowed in the standard error format.

    Example:
        try:
            invoice.mark_paid()
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot mark invoice paid from '{invoice.status}'",
                details={"current_state": invoice.status, "target_state": "Paid"},
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class InvoiceTermsLockedError(ValidationError):
    """Raised when amount or currency of a saved invoice is changed."""

    default_error_code: str = "INVOICE_TERMS_LOCKED"
