"""
Payment admin configuration.

Payments are written only by the reconciliation engine, so the admin is
read-only for them. Webhook events allow a status reset so an operator
can requeue a delivery.
"""

from django.contrib import admin

from payments.models import Payment, WebhookEvent
from payments.state_machines import WebhookEventStatus

__all__ = [
    "PaymentAdmin",
    "WebhookEventAdmin",
]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for Payment.

    Provides visibility into recorded payments and their references.
    """

    list_display = [
        "id",
        "reference",
        "invoice",
        "amount",
        "currency",
        "status",
        "provider",
        "created_at",
    ]
    list_filter = ["status", "provider", "currency", "created_at"]
    search_fields = [
        "id",
        "reference",
        "provider_transaction_id",
        "customer_email",
        "invoice__id",
    ]
    readonly_fields = [
        "id",
        "invoice",
        "amount",
        "currency",
        "status",
        "reference",
        "provider",
        "provider_transaction_id",
        "payment_method",
        "customer_email",
        "customer_name",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "invoice", "reference", "status"),
            },
        ),
        (
            "Amount",
            {
                "fields": ("amount", "currency"),
            },
        ),
        (
            "Gateway",
            {
                "fields": ("provider", "provider_transaction_id", "payment_method"),
            },
        ),
        (
            "Payer",
            {
                "fields": ("customer_email", "customer_name"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Payments are the audit trail."""
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into webhook processing status.
    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "provider_event_id",
        "event_type",
        "status",
        "result_action",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "provider", "created_at"]
    search_fields = ["id", "provider_event_id", "event_type"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "provider",
        "provider_event_id",
        "event_type",
        "payload",
        "result_action",
        "processed_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    actions = ["requeue_events"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "provider", "provider_event_id", "event_type", "status"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("result_action", "processed_at", "retry_count"),
            },
        ),
        (
            "Error Info",
            {
                "fields": ("error_message",),
                "classes": ("collapse",),
            },
        ),
        (
            "Payload",
            {
                "fields": ("payload",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        """Disable adding webhook events through admin."""
        return False

    @admin.action(description="Requeue selected events")
    def requeue_events(self, request, queryset):
        from payments.tasks import process_webhook_event

        queued = 0
        for event in queryset.exclude(status=WebhookEventStatus.PROCESSED):
            process_webhook_event.delay(str(event.id))
            queued += 1
        self.message_user(request, f"Queued {queued} webhook event(s)")
