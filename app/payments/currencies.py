"""
Currencies accepted for invoicing and Flutterwave checkout.

Every supported currency settles with two decimal places, so amounts are
stored as DecimalField(decimal_places=2) and compared as Decimals.

Usage:
    from payments.currencies import normalize_currency, payment_options_for

    code = normalize_currency("zmw")      # "ZMW"
    payment_options_for("ZMW")            # "card,mobilemoney,banktransfer,ussd"
"""

from __future__ import annotations

from django.db import models

from core.exceptions import ValidationError


class Currency(models.TextChoices):
    """ISO 4217 codes supported by the Flutterwave integration."""

    USD = "USD", "US Dollar"
    ZMW = "ZMW", "Zambian Kwacha"
    EUR = "EUR", "Euro"
    GBP = "GBP", "British Pound"
    NGN = "NGN", "Nigerian Naira"
    KES = "KES", "Kenyan Shilling"
    GHS = "GHS", "Ghanaian Cedi"
    ZAR = "ZAR", "South African Rand"


DEFAULT_CURRENCY = Currency.USD

DECIMAL_PLACES = 2

# Flutterwave checkout payment_options per currency
_PAYMENT_OPTIONS: dict[str, tuple[str, ...]] = {
    Currency.USD: ("card", "mobilemoney", "banktransfer", "ussd"),
    Currency.ZMW: ("card", "mobilemoney", "banktransfer", "ussd"),
    Currency.EUR: ("card", "banktransfer"),
    Currency.GBP: ("card", "banktransfer"),
    Currency.NGN: ("card", "mobilemoney", "banktransfer", "ussd"),
    Currency.KES: ("card", "mobilemoney", "banktransfer"),
    Currency.GHS: ("card", "mobilemoney", "banktransfer"),
    Currency.ZAR: ("card", "banktransfer"),
}


def is_supported_currency(code: str | None) -> bool:
    """Return True if the code (any case) is a supported currency."""
    if not code:
        return False
    return code.strip().upper() in Currency.values


def normalize_currency(code: str | None) -> str:
    """
    Upper-case and validate a currency code.

    Raises:
        ValidationError: If the code is empty or not supported
    """
    if not is_supported_currency(code):
        raise ValidationError(
            f"Unsupported currency: {code!r}",
            error_code="UNSUPPORTED_CURRENCY",
            details={"currency": code, "supported": list(Currency.values)},
        )
    return code.strip().upper()


def payment_options_for(code: str) -> str:
    """Comma-separated Flutterwave payment_options for a currency."""
    return ",".join(_PAYMENT_OPTIONS[normalize_currency(code)])
