from django.contrib import admin

from .models import NotificationLog


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    list_display = ("event_type", "booking", "recipient", "status", "attempts", "created_at")
    list_filter = ("status", "event_type", "channel")
    search_fields = ("recipient", "booking__booking_code")
    readonly_fields = [field.name for field in NotificationLog._meta.fields]
