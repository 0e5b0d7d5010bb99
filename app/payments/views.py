"""
DRF views for payments app.

Endpoints:
    POST   /api/v1/payments/initiate/            - Open a payment with the gateway
    POST   /api/v1/payments/verify/              - Verify a payment after checkout
    GET    /api/v1/payments/history/             - List the user's payments
    GET    /api/v1/payments/<uuid>/              - Payment status (owner or staff)
    DELETE /api/v1/payments/<uuid>/              - Delete a CREATED/FAILED payment
    POST   /api/v1/payments/<uuid>/refund/       - Refund a payment (staff)
    GET    /api/v1/payments/return/              - Hosted checkout return redirect
    POST   /api/v1/payments/webhooks/cashfree/   - Gateway webhook (payments.webhooks)

Errors raised by the services are rendered by
core.exceptions.application_exception_handler.
"""

from __future__ import annotations

import logging

from django.http import HttpResponseRedirect
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.serializers import (
    InitiatePaymentResponseSerializer,
    InitiatePaymentSerializer,
    PaymentHistoryQuerySerializer,
    PaymentSerializer,
    RefundPaymentSerializer,
    VerifyPaymentResponseSerializer,
    VerifyPaymentSerializer,
)
from payments.services import (
    PaymentIntentService,
    PaymentReconciler,
    PaymentService,
    RefundService,
)

logger = logging.getLogger(__name__)


class InitiatePaymentView(APIView):
    """
    Open a payment.

    POST: Validate the intent, create a gateway order, return the session

    URL: /api/v1/payments/initiate/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Initiate a payment",
        description=(
            "Creates a Cashfree order for a LOAN_FEE, MEMBERSHIP or DOCUMENT_FEE payment "
            "and returns the payment_session_id for the hosted checkout."
        ),
        tags=["Payments"],
        request=InitiatePaymentSerializer,
        responses={201: InitiatePaymentResponseSerializer},
    )
    def post(self, request):
        serializer = InitiatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = PaymentIntentService().initiate_raw(
            owner_id=request.user.pk,
            payment_type=data["type"],
            amount=data.get("amount"),
            currency=data.get("currency") or "INR",
            notes=data.get("notes"),
            loan_application_id=data.get("loan_application_id"),
            receipt=data.get("receipt") or None,
        )

        return Response(
            {
                "order_id": result.gateway_order_id,
                "payment_session_id": result.payment_session_id,
                "order_status": result.order_status,
                "payment": PaymentSerializer(result.payment).data,
            },
            status=status.HTTP_201_CREATED,
        )


class VerifyPaymentView(APIView):
    """
    Verify a payment after the payer returns from checkout.

    The gateway is asked for the order's payment attempts; its answer is
    applied exactly once, racing safely with the webhook.

    URL: /api/v1/payments/verify/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Verify a payment",
        tags=["Payments"],
        request=VerifyPaymentSerializer,
        responses={200: VerifyPaymentResponseSerializer},
    )
    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = PaymentReconciler().verify(
            data["order_id"],
            request.user,
            gateway_payment_id=data.get("gateway_payment_id") or None,
            reported_status=data.get("reported_status") or None,
        )

        return Response({"outcome": result.outcome, "payment": PaymentSerializer(result.payment).data})


class PaymentHistoryView(APIView):
    """
    List the current user's payments, newest first.

    Staff see every payer's payments and may filter by mobile.

    URL: /api/v1/payments/history/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Payment history",
        tags=["Payments"],
        parameters=[
            OpenApiParameter("status", str, description="Filter by payment status"),
            OpenApiParameter("type", str, description="Filter by payment type"),
            OpenApiParameter("mobile", str, description="Filter by payer mobile"),
        ],
        responses={200: PaymentSerializer(many=True)},
    )
    def get(self, request):
        query = PaymentHistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        payments = PaymentService.history(
            request.user,
            status=query.validated_data.get("status"),
            payment_type=query.validated_data.get("type"),
            mobile=query.validated_data.get("mobile"),
        )
        return Response(PaymentSerializer(payments, many=True).data)


class PaymentDetailView(APIView):
    """
    GET: Payment status
    DELETE: Delete a CREATED or FAILED payment

    URL: /api/v1/payments/<uuid>/

    Payments of other users are reported as not found.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get payment status",
        tags=["Payments"],
        responses={200: PaymentSerializer},
    )
    def get(self, request, payment_id):
        payment = PaymentService.get_for_user(payment_id, request.user)
        return Response(PaymentSerializer(payment).data)

    @extend_schema(
        summary="Delete a payment",
        description="Only CREATED and FAILED payments can be deleted.",
        tags=["Payments"],
        responses={204: None},
    )
    def delete(self, request, payment_id):
        PaymentService.delete(payment_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class RefundPaymentView(APIView):
    """
    Refund a SUCCESS payment (staff only).

    URL: /api/v1/payments/<uuid>/refund/
    """

    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        summary="Refund a payment",
        tags=["Payments - Admin"],
        request=RefundPaymentSerializer,
        responses={200: PaymentSerializer},
    )
    def post(self, request, payment_id):
        serializer = RefundPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = RefundService().refund(
            payment_id,
            amount=data.get("amount"),
            reason=data.get("reason") or None,
        )

        logger.info(
            "Refund issued by staff",
            extra={"payment_id": str(payment.id), "staff_user_id": request.user.pk},
        )
        return Response(PaymentSerializer(payment).data)


class PaymentReturnView(APIView):
    """
    Hosted checkout return URL.

    Redirects the payer to the frontend with a one-hour checkout return token.

    URL: /api/v1/payments/return/?order_id=...&order_status=...
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Checkout return redirect",
        tags=["Payments"],
        parameters=[
            OpenApiParameter("order_id", str),
            OpenApiParameter("order_status", str),
        ],
        responses={302: None},
    )
    def get(self, request):
        url = PaymentService.build_return_redirect(
            request.query_params.get("order_id"),
            request.query_params.get("order_status"),
        )
        return HttpResponseRedirect(url)
