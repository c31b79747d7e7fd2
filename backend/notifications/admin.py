from django.contrib import admin

from .models import PushToken


@admin.register(PushToken)
class PushTokenAdmin(admin.ModelAdmin):
    list_display = ["device_id", "updated_at"]
    search_fields = ["device_id"]
    readonly_fields = ["created_at", "updated_at"]
