from django.contrib import admin

from .models import MenuItem, ServiceHours


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "price", "stock")
    list_filter = ("category",)
    search_fields = ("name",)


admin.site.register(ServiceHours)
