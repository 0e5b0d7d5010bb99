"""
Read and housekeeping operations on payments.

Everything here is owner-scoped: a payment that belongs to someone else
is reported as not found, so order ids cannot be probed. Staff see all
payments.

Usage:
    from payments.services import PaymentService

    payment = PaymentService.get_for_user(payment_id, request.user)
    payments = PaymentService.history(request.user, status="SUCCESS")
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from django.conf import settings

from rest_framework_simplejwt.tokens import Token

from core.services import BaseService

from payments.exceptions import PaymentDeletionNotAllowedError, PaymentNotFoundError
from payments.models import Payment

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User


class CheckoutReturnToken(Token):
    """
    Signed proof of a checkout outcome handed back to the frontend.

    Its token_type is not in AUTH_TOKEN_CLASSES, so JWTAuthentication
    refuses it as a bearer credential. Decode it with
    CheckoutReturnToken(raw) to read the payment claims.
    """

    token_type = "checkout_return"
    lifetime = timedelta(hours=1)


class PaymentService(BaseService):
    """Owner-scoped lookups, history, deletion and the checkout return redirect."""

    @classmethod
    def _visible_to(cls, user: User) -> QuerySet[Payment]:
        queryset = Payment.objects.select_related("loan_application")
        if user.is_staff:
            return queryset
        return queryset.filter(user=user)

    @classmethod
    def get_for_user(cls, payment_id: uuid.UUID, user: User) -> Payment:
        """
        Return one payment if the user owns it or is staff.

        Raises:
            PaymentNotFoundError: Missing or owned by someone else
        """
        payment = cls._visible_to(user).filter(pk=payment_id).first()
        if payment is None:
            raise PaymentNotFoundError(
                f"Payment {payment_id} not found",
                details={"payment_id": str(payment_id)},
            )
        return payment

    @classmethod
    def history(
        cls,
        user: User,
        status: str | None = None,
        payment_type: str | None = None,
        mobile: str | None = None,
    ) -> QuerySet[Payment]:
        """
        Payments newest first, optionally filtered.

        A payer sees their own payments. Staff see every payer's and may
        narrow the list to one payer by mobile number.
        """
        queryset = cls._visible_to(user)
        if mobile:
            queryset = queryset.filter(user__mobile=mobile)
        if status:
            queryset = queryset.filter(status=status)
        if payment_type:
            queryset = queryset.filter(type=payment_type)
        return queryset.order_by("-created_at")

    @classmethod
    def delete(cls, payment_id: uuid.UUID, user: User) -> None:
        """
        Delete a CREATED or FAILED payment.

        Raises:
            PaymentNotFoundError: Missing or owned by someone else
            PaymentDeletionNotAllowedError: SUCCESS and REFUNDED are kept
        """
        payment = cls.get_for_user(payment_id, user)
        if not payment.is_deletable:
            raise PaymentDeletionNotAllowedError(
                f"Cannot delete a payment in {payment.status} state",
                details={"payment_id": str(payment.id), "status": payment.status},
            )

        payment.delete()
        cls.get_logger().info(
            "Payment deleted",
            extra={"payment_id": str(payment_id), "deleted_by": user.pk},
        )

    @classmethod
    def build_return_redirect(cls, gateway_order_id: str | None, order_status: str | None) -> str:
        """
        Build the frontend URL the hosted checkout returns the payer to.

        The URL carries a one-hour CheckoutReturnToken naming the payer
        and payment. It is not an access token. Unknown orders redirect with
        payment_status=error and no token.
        """
        frontend_url = getattr(settings, "FRONTEND_URL", "").rstrip("/")
        payment = None
        if gateway_order_id:
            payment = Payment.objects.select_related("user").filter(gateway_order_id=gateway_order_id).first()

        if payment is None:
            cls.get_logger().warning(
                "Checkout returned for unknown order",
                extra={"gateway_order_id": gateway_order_id},
            )
            return f"{frontend_url}/?{urlencode({'step': 'welcome', 'payment_status': 'error'})}"

        token = CheckoutReturnToken.for_user(payment.user)
        token["payment_id"] = str(payment.id)
        token["order_id"] = payment.gateway_order_id
        token["status"] = payment.status

        query = {
            "step": "welcome",
            "session": str(token),
            "payment_status": (order_status or payment.status).upper(),
        }
        return f"{frontend_url}/?{urlencode(query)}"
