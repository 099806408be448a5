"""
Invoice admin configuration.

Status is managed by django-fsm transitions and amount/currency are
immutable after creation, so both are read-only here.
"""

from django.contrib import admin

from invoices.models import Invoice
from payments.models import Payment


class PaymentInline(admin.TabularInline):
    """Read-only list of payments recorded against the invoice."""

    model = Payment
    extra = 0
    can_delete = False
    fields = ["reference", "amount", "currency", "status", "provider", "created_at"]
    readonly_fields = fields
    ordering = ["-created_at"]

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """Admin configuration for Invoice."""

    list_display = [
        "id",
        "invoice_number",
        "owner",
        "customer_name",
        "amount",
        "currency",
        "status",
        "due_date",
        "created_at",
    ]
    list_filter = ["status", "currency", "created_at"]
    search_fields = ["id", "invoice_number", "customer_name", "customer_email", "owner__email"]
    readonly_fields = ["id", "status", "paid_at", "created_at", "updated_at"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [PaymentInline]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "owner", "invoice_number", "status"),
            },
        ),
        (
            "Customer",
            {
                "fields": ("customer_name", "customer_email"),
            },
        ),
        (
            "Terms",
            {
                "fields": ("amount", "currency", "due_date", "description"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("paid_at", "created_at", "updated_at"),
            },
        ),
    )

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return [*self.readonly_fields, "amount", "currency"]
        return self.readonly_fields
