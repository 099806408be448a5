"""
DRF serializers for payments app.

This module provides serializers for:
- Payment verification requests and results
- Payment history
- Hosted checkout link requests

Related files:
    - models.py: Payment, WebhookEvent
    - views.py: Payment API views

Usage:
    serializer = PaymentSerializer(payment)
    data = serializer.data
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import Payment


class VerifyPaymentSerializer(serializers.Serializer):
    """
    Verification request sent after the checkout redirect.

    Flutterwave transaction ids are integers. The invoice id is accepted
    as a plain string; ReconciliationService validates its format so
    every input problem reports INVALID_REQUEST.
    """

    transaction_id = serializers.RegexField(
        r"^\d+$",
        max_length=64,
        help_text="Flutterwave transaction id from the redirect",
    )
    invoice_id = serializers.CharField(
        max_length=64,
        help_text="Invoice being paid",
    )


class VerifyPaymentResultSerializer(serializers.Serializer):
    """Summary of a reconciled payment."""

    payment_id = serializers.UUIDField()
    transaction_id = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    status = serializers.CharField()
    reference = serializers.CharField()
    invoice_id = serializers.UUIDField()
    invoice_status = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    """Error body; failure details are merged into the top level."""

    success = serializers.BooleanField(default=False)
    error = serializers.CharField()
    error_code = serializers.CharField()


class PaymentSerializer(serializers.ModelSerializer):
    """
    Payment serializer for history listings.

    Fields:
        id: Payment ID
        invoice_id: Invoice settled by the payment
        invoice_number: Human-facing invoice number
        amount: Amount charged (string, two decimals)
        currency: ISO 4217 code
        status: Canonical payment status
        reference: Transaction reference (tx_ref)
        provider: Gateway name
        provider_transaction_id: Gateway transaction id
        payment_method: Payment type reported by the gateway
        customer_email: Payer email
        customer_name: Payer name
        created_at: When the payment was recorded
    """

    invoice_id = serializers.UUIDField(read_only=True)
    invoice_number = serializers.CharField(source="invoice.invoice_number", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "invoice_id",
            "invoice_number",
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
        ]
        read_only_fields = fields


class PaymentHistorySerializer(serializers.Serializer):
    """Paginated payment history."""

    payments = PaymentSerializer(many=True)
    total = serializers.IntegerField()
    limit = serializers.IntegerField()
    offset = serializers.IntegerField()


class CreatePaymentLinkSerializer(serializers.Serializer):
    """Request for a hosted checkout link."""

    invoice_id = serializers.UUIDField(help_text="Invoice to collect payment for")
    redirect_url = serializers.URLField(
        required=False,
        help_text="Override for FLUTTERWAVE_REDIRECT_URL",
    )


class PaymentLinkSerializer(serializers.Serializer):
    link = serializers.URLField()
    tx_ref = serializers.CharField()
    invoice_id = serializers.UUIDField()
