"""
DRF serializers for the invoices app.
"""

from __future__ import annotations

from rest_framework import serializers


class RecentPaymentSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    status = serializers.CharField()
    created_at = serializers.DateTimeField()
    provider = serializers.CharField()


class InvoicePaymentStatusSerializer(serializers.Serializer):
    """
    Public payment status of an invoice.

    Contains no customer or owner details; safe for shared invoice pages.
    """

    invoice_id = serializers.UUIDField()
    status = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    recent_payments = RecentPaymentSerializer(many=True)
