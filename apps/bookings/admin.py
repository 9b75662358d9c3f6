"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingExtension


class BookingExtensionInline(admin.TabularInline):
    model = BookingExtension
    extra = 0
    can_delete = False
    readonly_fields = (
        "previous_end_date",
        "previous_dropoff_time",
        "new_end_date",
        "new_dropoff_time",
        "additional_amount",
        "reason",
        "created_by",
        "created_at",
    )


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "customer_name",
        "vehicle_registration",
        "status",
        "payment_status",
        "scheduled_start",
        "scheduled_end",
        "total_amount",
        "paid_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_mode", "scheduled_end")
    search_fields = ("booking_code", "customer_name", "customer_contact", "vehicle_registration")
    # Lifecycle changes go through the API so they are authorized and audited.
    readonly_fields = (
        "booking_code",
        "status",
        "total_amount",
        "paid_amount",
        "payment_status",
        "late_fee",
        "extension_fee",
        "refund_amount",
        "completed_by",
        "cancelled_by",
        "confirmed_at",
        "started_at",
        "completed_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    inlines = [BookingExtensionInline]
