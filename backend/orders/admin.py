from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = [
        "position",
        "item_id",
        "name",
        "quantity",
        "unit_price",
        "original_price",
        "discount_percent",
        "delivered",
        "delivered_at",
    ]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["bill_reference", "order_status", "payment_status", "total_amount", "created_at"]
    list_filter = ["order_status", "payment_status"]
    search_fields = ["bill_reference", "lookup_token", "payment_id"]
    readonly_fields = [
        "bill_reference",
        "lookup_token",
        "device_owner",
        "order_status",
        "payment_status",
        "total_amount",
        "delivered_at",
        "created_at",
        "updated_at",
    ]
    inlines = [OrderItemInline]
