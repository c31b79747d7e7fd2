from django.contrib import admin

from .models import Campaign


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display = ("name", "discount_percent", "start_date", "start_time", "end_date", "end_time", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)
    filter_horizontal = ("applicable_items",)
