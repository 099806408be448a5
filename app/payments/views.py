"""
DRF views for payments app.

This module provides API views for:
- Payment verification after the checkout redirect
- Payment history
- Hosted checkout link creation

Related files:
    - services/: ReconciliationService, PaymentHistoryService, PaymentLinkService
    - serializers.py: Request/response serializers
    - urls.py: URL routing
    - webhooks/views.py: Flutterwave webhook endpoint

Endpoints:
    POST /api/payments/verify - Verify and reconcile a transaction (public)
    GET /api/payments/history - Payments on the caller's invoices
    POST /api/payments/link - Create a hosted checkout link

Security:
    - verify is public: the gateway, not the caller, is the source of truth
    - history and link require authentication and only touch owned invoices
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import ValidationError
from core.services import ServiceResult
from payments.serializers import (
    CreatePaymentLinkSerializer,
    ErrorResponseSerializer,
    PaymentHistorySerializer,
    PaymentLinkSerializer,
    PaymentSerializer,
    VerifyPaymentResultSerializer,
    VerifyPaymentSerializer,
)
from payments.services import (
    PaymentHistoryService,
    PaymentLinkService,
    ReconciliationService,
)

# Error codes that are not server faults
ERROR_STATUS_CODES = {
    "INVALID_REQUEST": status.HTTP_400_BAD_REQUEST,
    "INVALID_INVOICE_ID": status.HTTP_400_BAD_REQUEST,
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "UNSUPPORTED_CURRENCY": status.HTTP_400_BAD_REQUEST,
    "CUSTOMER_EMAIL_REQUIRED": status.HTTP_400_BAD_REQUEST,
    "PAYMENT_NOT_SUCCESSFUL": status.HTTP_400_BAD_REQUEST,
    "AMOUNT_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "CURRENCY_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "GATEWAY_REJECTED": status.HTTP_400_BAD_REQUEST,
    "INVOICE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ALREADY_PROCESSED": status.HTTP_409_CONFLICT,
    "INVOICE_ALREADY_PAID": status.HTTP_409_CONFLICT,
    "INVALID_STATE_TRANSITION": status.HTTP_409_CONFLICT,
    "LOCK_ACQUISITION_FAILED": status.HTTP_409_CONFLICT,
}


def status_for_failure(result: ServiceResult) -> int:
    """
    HTTP status for a failed ServiceResult.

    VERIFICATION_FAILED follows its cause: a gateway-reported rejection
    is the client's problem, an outage or bad response is ours.
    """
    if result.error_code == "VERIFICATION_FAILED":
        cause = (result.details or {}).get("cause")
        return ERROR_STATUS_CODES.get(cause, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return ERROR_STATUS_CODES.get(
        result.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )


class PaymentHistoryPagination(LimitOffsetPagination):
    default_limit = 50
    max_limit = 100


class VerifyPaymentView(APIView):
    """
    Verify a Flutterwave transaction and record it against an invoice.

    POST /api/payments/verify

    Authentication:
        None. Payers arrive from the hosted checkout without an account.

    Request:
        {"transaction_id": "285959875", "invoice_id": "<uuid>"}
    """

    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(
        operation_id="verify_payment",
        summary="Verify payment",
        description=(
            "Verify a transaction with Flutterwave and, if it is a successful "
            "charge for the invoice's exact amount and currency, record the "
            "payment and mark the invoice Paid. Repeating the call for the "
            "same transaction returns 409 with the original payment_id."
        ),
        request=VerifyPaymentSerializer,
        responses={
            200: VerifyPaymentResultSerializer,
            400: OpenApiResponse(
                response=ErrorResponseSerializer,
                description="Invalid input, mismatch, or payment not successful",
            ),
            404: OpenApiResponse(
                response=ErrorResponseSerializer, description="Invoice not found"
            ),
            409: OpenApiResponse(
                response=ErrorResponseSerializer,
                description="Already processed, invoice already paid, or in progress",
            ),
            500: OpenApiResponse(
                response=ErrorResponseSerializer,
                description="Gateway unavailable or persistence failure",
            ),
        },
        tags=["Payments"],
    )
    def post(self, request):
        """Verify a transaction."""
        serializer = VerifyPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {
                    "success": False,
                    "error": "Invalid verification request",
                    "error_code": "INVALID_REQUEST",
                    "errors": serializer.errors,
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = ReconciliationService().verify_payment(
            serializer.validated_data["transaction_id"],
            serializer.validated_data["invoice_id"],
            trace_id=request.headers.get("X-Request-ID"),
        )

        if not result.success:
            return Response(result.to_response(), status=status_for_failure(result))

        return Response(VerifyPaymentResultSerializer(result.data).data)


class PaymentHistoryView(APIView):
    """
    Payments recorded on the caller's invoices.

    GET /api/payments/history?status=successful&currency=USD&limit=50&offset=0
    """

    permission_classes = [IsAuthenticated]
    pagination_class = PaymentHistoryPagination

    @extend_schema(
        operation_id="list_payment_history",
        summary="List payment history",
        description="Payments on invoices owned by the authenticated user, newest first.",
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Filter by payment status",
                required=False,
            ),
            OpenApiParameter(
                name="currency",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Filter by ISO 4217 currency code",
                required=False,
            ),
            OpenApiParameter(
                name="start_date",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Only payments created at or after this ISO 8601 time",
                required=False,
            ),
            OpenApiParameter(
                name="end_date",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Only payments created at or before this ISO 8601 time",
                required=False,
            ),
            OpenApiParameter(
                name="limit",
                type=int,
                location=OpenApiParameter.QUERY,
                description="Page size (default 50, max 100)",
                required=False,
            ),
            OpenApiParameter(
                name="offset",
                type=int,
                location=OpenApiParameter.QUERY,
                description="Number of payments to skip",
                required=False,
            ),
        ],
        responses={
            200: PaymentHistorySerializer,
            400: OpenApiResponse(
                response=ErrorResponseSerializer, description="Invalid filter"
            ),
        },
        tags=["Payments"],
    )
    def get(self, request):
        """List payments."""
        try:
            queryset = PaymentHistoryService.get_payment_history(
                request.user,
                status=request.query_params.get("status"),
                currency=request.query_params.get("currency"),
                start_date=request.query_params.get("start_date"),
                end_date=request.query_params.get("end_date"),
            )
        except ValidationError as e:
            result = ServiceResult.from_exception(e)
            return Response(result.to_response(), status=status_for_failure(result))

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(queryset, request, view=self)

        return Response(
            {
                "payments": PaymentSerializer(page, many=True).data,
                "total": paginator.count,
                "limit": paginator.limit,
                "offset": paginator.offset,
            }
        )


class PaymentLinkView(APIView):
    """
    Create a Flutterwave hosted checkout link for an owned invoice.

    POST /api/payments/link
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_payment_link",
        summary="Create payment link",
        description=(
            "Create a hosted checkout link. The generated tx_ref embeds the "
            "invoice id and the invoice id is also sent as metadata, so the "
            "webhook can reconcile the charge."
        ),
        request=CreatePaymentLinkSerializer,
        responses={
            201: PaymentLinkSerializer,
            400: OpenApiResponse(
                response=ErrorResponseSerializer, description="Invalid request"
            ),
            404: OpenApiResponse(
                response=ErrorResponseSerializer, description="Invoice not found"
            ),
            409: OpenApiResponse(
                response=ErrorResponseSerializer,
                description="Invoice already paid or cancelled",
            ),
            500: OpenApiResponse(
                response=ErrorResponseSerializer, description="Gateway error"
            ),
        },
        tags=["Payments"],
    )
    def post(self, request):
        """Create a payment link."""
        serializer = CreatePaymentLinkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentLinkService().create_payment_link(
            request.user,
            serializer.validated_data["invoice_id"],
            redirect_url=serializer.validated_data.get("redirect_url"),
        )

        if not result.success:
            return Response(result.to_response(), status=status_for_failure(result))

        return Response(
            PaymentLinkSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )
