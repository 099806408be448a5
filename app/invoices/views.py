"""
Public invoice endpoints.

Endpoints:
    GET /api/public/invoices/{id}/payment-status - Status and recent payments
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from invoices.serializers import InvoicePaymentStatusSerializer
from invoices.services import InvoiceService


class InvoicePaymentStatusView(APIView):
    """
    Payment status of an invoice for customers holding its link.

    GET /api/public/invoices/{invoice_id}/payment-status
    """

    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(
        operation_id="get_invoice_payment_status",
        summary="Get invoice payment status",
        description=(
            "Invoice status with amount, currency and the five most recent "
            "payments. Used by the public invoice page after checkout."
        ),
        responses={
            200: InvoicePaymentStatusSerializer,
            404: OpenApiResponse(description="Invoice not found"),
        },
        tags=["Invoices - Public"],
    )
    def get(self, request, invoice_id):
        result = InvoiceService.get_payment_status(invoice_id)

        if not result.success:
            if result.error_code == "INVALID_INVOICE_ID":
                return Response(result.to_response(), status=status.HTTP_400_BAD_REQUEST)
            return Response(result.to_response(), status=status.HTTP_404_NOT_FOUND)

        return Response(InvoicePaymentStatusSerializer(result.data).data)
