"""
Payment admin configuration.

Payments are read-only in the admin: status changes go through the
reconciler and the refund service so side effects stay consistent.
Prices (PaymentConfig) are the one thing staff edit here.
"""

from django.contrib import admin

from payments.models import Payment, PaymentConfig, WebhookEvent


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for Payment.

    State changes should be made through the service layer, not admin.
    """

    list_display = [
        "gateway_order_id",
        "user",
        "type",
        "amount",
        "currency",
        "status",
        "paid_at",
        "created_at",
    ]
    list_filter = ["status", "type", "currency", "created_at"]
    search_fields = ["id", "gateway_order_id", "gateway_payment_id", "user__email", "refund_id"]
    raw_id_fields = ["user", "loan_application"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (None, {"fields": ("id", "user", "type", "status", "loan_application")}),
        ("Amount", {"fields": ("amount", "currency", "receipt", "notes")}),
        (
            "Gateway",
            {"fields": ("gateway_order_id", "payment_session_id", "gateway_payment_id", "failure_reason", "paid_at")},
        ),
        (
            "Refund",
            {
                "fields": ("refund_id", "refund_amount", "refund_reason", "refunded_at"),
                "classes": ("collapse",),
            },
        ),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False


@admin.register(PaymentConfig)
class PaymentConfigAdmin(admin.ModelAdmin):
    list_display = ["type", "plan_type", "amount", "currency", "is_active", "created_at"]
    list_filter = ["type", "plan_type", "is_active"]
    search_fields = ["description"]
    ordering = ["type", "plan_type", "-created_at"]


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Failed deliveries are found here for follow-up.
    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "event_type",
        "gateway_order_id",
        "status",
        "signature_verified",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "signature_verified", "created_at"]
    search_fields = ["id", "gateway_order_id", "gateway_payment_id"]
    readonly_fields = [
        "id",
        "event_type",
        "gateway_order_id",
        "gateway_payment_id",
        "payload",
        "status",
        "signature_verified",
        "processed_at",
        "error_message",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
