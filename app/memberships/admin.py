"""
Django admin configuration for memberships.
"""

from django.contrib import admin

from memberships.models import Membership


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("user", "status", "plan_type", "start_date", "end_date")
    list_filter = ("status", "plan_type", "is_active")
    search_fields = ("user__email", "user__mobile")
    raw_id_fields = ("user", "last_payment")
    readonly_fields = ("created_at", "updated_at")
