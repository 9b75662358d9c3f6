"""Admin registration for the payment ledger and settings."""

from __future__ import annotations

from django.contrib import admin

from .models import AppSetting, PaymentEntry


@admin.register(PaymentEntry)
class PaymentEntryAdmin(admin.ModelAdmin):
    list_display = ("booking", "amount", "mode", "status", "source", "created_by", "created_at")
    list_filter = ("status", "mode", "source")
    search_fields = ("booking__booking_code", "booking__customer_name", "notes")
    readonly_fields = [field.name for field in PaymentEntry._meta.fields]

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(AppSetting)
class AppSettingAdmin(admin.ModelAdmin):
    list_display = ("setting_key", "updated_by", "updated_at")
    readonly_fields = ("updated_by", "updated_at")
