from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("orders.urls")),
    path("api/", include("menu.urls")),
    path("api/", include("offers.urls")),
    path("api/notifications/", include("notifications.urls")),
]
