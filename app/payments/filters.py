import django_filters as filters

from payments.currencies import is_supported_currency
from payments.models import Payment
from payments.state_machines import PaymentStatus


class PaymentHistoryFilter(filters.FilterSet):
    status = filters.CharFilter(method="filter_status")
    currency = filters.CharFilter(method="filter_currency")
    start_date = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    end_date = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Payment
        fields = ["status", "currency", "start_date", "end_date"]

    # Unknown values match nothing instead of being ignored
    def filter_status(self, queryset, name, value):
        normalized = PaymentStatus.normalize(value)
        if normalized is None:
            return queryset.none()
        return queryset.filter(status=normalized)

    def filter_currency(self, queryset, name, value):
        if not is_supported_currency(value):
            return queryset.none()
        return queryset.filter(currency=value.strip().upper())
