"""
Add celery-beat schedules for webhook maintenance and invoice repair.

Creates periodic tasks for:
- retry_failed_webhooks (every 5 minutes)
- cleanup_stuck_webhooks (every 15 minutes)
- repair_unpaid_invoices (every 15 minutes)
- cleanup_old_webhooks (daily)
"""

from django.db import migrations

PERIODIC_TASKS = [
    {
        "name": "Retry Failed Webhooks",
        "task": "payments.tasks.retry_failed_webhooks",
        "every": 5,
        "period": "minutes",
        "description": (
            "Re-queues failed webhook events below the retry limit and "
            "pending events that were never queued."
        ),
    },
    {
        "name": "Reset Stuck Webhooks",
        "task": "payments.tasks.cleanup_stuck_webhooks",
        "every": 15,
        "period": "minutes",
        "description": "Resets webhook events stuck in processing to failed.",
    },
    {
        "name": "Repair Unpaid Invoices",
        "task": "payments.tasks.repair_unpaid_invoices",
        "every": 15,
        "period": "minutes",
        "description": (
            "Marks invoices Paid when a successful payment was recorded "
            "but the invoice update did not happen."
        ),
    },
    {
        "name": "Delete Old Webhooks",
        "task": "payments.tasks.cleanup_old_webhooks",
        "every": 1,
        "period": "days",
        "description": "Deletes processed webhook events older than 90 days.",
    },
]


def create_periodic_tasks(apps, schema_editor):
    """Create the periodic tasks."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    for spec in PERIODIC_TASKS:
        schedule, _ = IntervalSchedule.objects.get_or_create(
            every=spec["every"],
            period=spec["period"],
        )
        PeriodicTask.objects.get_or_create(
            name=spec["name"],
            defaults={
                "task": spec["task"],
                "interval": schedule,
                "enabled": True,
                "description": spec["description"],
            },
        )


def remove_periodic_tasks(apps, schema_editor):
    """Remove the periodic tasks on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(
        name__in=[spec["name"] for spec in PERIODIC_TASKS],
    ).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
