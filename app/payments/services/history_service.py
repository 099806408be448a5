"""
Payment history for invoice owners.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import ValidationError
from core.services import BaseService
from payments.filters import PaymentHistoryFilter
from payments.models import Payment

if TYPE_CHECKING:
    from django.db.models import QuerySet


class PaymentHistoryService(BaseService):
    """Read-only queries over payments recorded for a user's invoices."""

    @classmethod
    def get_payment_history(
        cls,
        user,
        status: str | None = None,
        currency: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> QuerySet[Payment]:
        """
        Payments on invoices owned by ``user``, newest first.

        Args:
            user: Invoice owner
            status: Optional status filter (provider spellings accepted)
            currency: Optional ISO 4217 filter (case-insensitive)
            start_date: Optional ISO 8601 lower bound on created_at
            end_date: Optional ISO 8601 upper bound on created_at

        An unrecognized status or currency filter matches nothing rather
        than being ignored.

        Raises:
            ValidationError: If a date bound is not ISO 8601
        """
        queryset = (
            Payment.objects.filter(invoice__owner=user)
            .select_related("invoice")
            .order_by("-created_at")
        )

        params = {
            "status": status,
            "currency": currency,
            "start_date": start_date,
            "end_date": end_date,
        }
        filterset = PaymentHistoryFilter(
            {name: value for name, value in params.items() if value},
            queryset=queryset,
        )
        if not filterset.is_valid():
            raise ValidationError(
                "Invalid history filter",
                details={"fields": filterset.errors.get_json_data()},
            )

        return filterset.qs
